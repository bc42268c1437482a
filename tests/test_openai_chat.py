import asyncio
from types import SimpleNamespace

from app.config import OpenAISettings
from app.tools.openai_chat import OpenAIChatClient


class StubCompletions:
    def __init__(self):
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        message = SimpleNamespace(content="Expectation damages.")
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def test_complete_sends_configured_sampling_settings():
    completions = StubCompletions()
    stub = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    client = OpenAIChatClient(OpenAISettings(api_key="k", temperature=0.1, max_tokens=900), client=stub)

    assert asyncio.run(client.complete("What damages follow a breach?")) == "Expectation damages."

    request = completions.requests[0]
    assert request["temperature"] == 0.1
    assert request["max_completion_tokens"] == 900
    assert request["messages"] == [{"role": "user", "content": "What damages follow a breach?"}]
