import pytest
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from landing_page_drafter import vertex_ai_adapter
from landing_page_drafter.vertex_ai_adapter import VertexAIAdapter, parse_json_response


class Headline(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    headline: str
    cta_text: str = "Contact Me"


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModel:
    def __init__(self, text):
        self.text = text
        self.prompts = []

    async def generate_content_async(self, prompt, generation_config=None):
        self.prompts.append(prompt)
        if isinstance(self.text, Exception):
            raise self.text
        return FakeResponse(self.text)


@pytest.fixture
def make_adapter(monkeypatch):
    monkeypatch.setattr(vertex_ai_adapter.vertexai, "init", lambda **kwargs: None)

    def make(text):
        model = FakeModel(text)
        monkeypatch.setattr(vertex_ai_adapter, "GenerativeModel", lambda name: model)
        return VertexAIAdapter(project_id="demo"), model

    return make


def test_parse_json_response_strips_code_fences():
    assert parse_json_response('```json\n{"headline": "Hi"}\n```') == {"headline": "Hi"}
    with pytest.raises(ValueError):
        parse_json_response("not json")


@pytest.mark.asyncio
async def test_invoke_returns_only_produced_fields(make_adapter):
    adapter, model = make_adapter('{"headline": "Ship faster"}')

    result = await adapter.invoke("Write a hero", Headline)

    assert result == {"headline": "Ship faster"}
    assert '"ctaText"' in model.prompts[0]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "text",
    ["not json", '["a list"]', '{"ctaText": "missing headline"}', RuntimeError("quota exceeded")],
)
async def test_invoke_treats_bad_output_as_absent(make_adapter, text):
    adapter, _ = make_adapter(text)

    assert await adapter.invoke("Write a hero", Headline) is None
