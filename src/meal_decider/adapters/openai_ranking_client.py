"""OpenAI Responses API client for candidate ranking."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI

from meal_decider.services.strategies import RankingClient


@dataclass
class OpenAIRankingClient(RankingClient):
    """Ranking client backed by OpenAI structured outputs."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIRankingClient":
        """Create an OpenAI ranking client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def rank(
        self,
        *,
        model: str,
        store: bool,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Call the Responses API and parse the JSON ranking."""
        response = await self.client.responses.create(
            model=model,
            input=[
                {
                    "role": "user",
                    "content": [{"type": "input_text", "text": prompt}],
                }
            ],
            text={
                "format": {
                    "type": "json_schema",
                    "name": "food_ranking",
                    "strict": True,
                    "schema": schema,
                }
            },
            store=store,
        )
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return json.loads(output_text)

    async def close(self) -> None:
        """Close the underlying OpenAI client."""
        await self.client.close()
