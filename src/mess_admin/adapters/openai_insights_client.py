"""OpenAI Responses API client for dashboard insights."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from mess_admin.services.insights import InsightsClient


@dataclass
class OpenAIInsightsClient(InsightsClient):
    """Insights client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIInsightsClient":
        """Create an OpenAI insights client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def generate(self, *, model: str, prompt: str) -> str:
        """Call OpenAI Responses API with a plain text prompt."""
        response = await self.client.responses.create(
            model=model,
            input=[
                {"role": "user", "content": [{"type": "input_text", "text": prompt}]}
            ],
            store=False,
        )
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return output_text

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.close()
