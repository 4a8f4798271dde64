"""Contract tests for TextCollaborator: retries, timeouts, streaming."""

import asyncio

import pytest

from ctxview.providers.base import LLMProvider, PromptRequest, PromptResponse, SamplingParams
from ctxview.providers.collaborator import CollaboratorUnavailable, TextCollaborator


class ScriptedProvider(LLMProvider):
    """Provider whose complete() replays a script of texts and exceptions."""

    def __init__(self, script: list, *, delay: float = 0.0, deltas: list[str] | None = None):
        self._script = list(script)
        self._delay = delay
        self._deltas = deltas or []
        self.requests: list[PromptRequest] = []
        self.stream_closed = False
        self.deltas_sent = 0

    @property
    def name(self) -> str:
        return "scripted"

    async def complete(self, request: PromptRequest) -> PromptResponse:
        self.requests.append(request)
        if self._delay:
            await asyncio.sleep(self._delay)
        step = self._script.pop(0)
        if isinstance(step, Exception):
            raise step
        return PromptResponse(text=step, model=request.model)

    async def stream(self, request: PromptRequest):  # type: ignore[override]
        self.requests.append(request)
        try:
            for delta in self._deltas:
                self.deltas_sent += 1
                yield delta
        finally:
            self.stream_closed = True


class BrokenStreamProvider(ScriptedProvider):
    async def stream(self, request: PromptRequest):  # type: ignore[override]
        yield "partial"
        raise ConnectionError("socket closed")


class TestGenerate:
    async def test_returns_text(self):
        collaborator = TextCollaborator(ScriptedProvider(["hello"]), "model-x")
        assert await collaborator.generate("hi") == "hello"

    async def test_builds_prompt_request(self):
        provider = ScriptedProvider(["ok"])
        params = SamplingParams(temperature=0.2, max_tokens=100)
        await TextCollaborator(provider, "model-x", sampling_params=params).generate("the prompt")
        request = provider.requests[0]
        assert request.model == "model-x"
        assert request.prompt == "the prompt"
        assert request.system_prompt is None
        assert request.sampling_params == params

    async def test_retries_then_succeeds(self):
        provider = ScriptedProvider([RuntimeError("500"), "second time"])
        collaborator = TextCollaborator(provider, "m", max_retries=1)
        assert await collaborator.generate("p") == "second time"
        assert len(provider.requests) == 2

    async def test_exhausted_retries_raise_unavailable(self):
        provider = ScriptedProvider([RuntimeError("a"), RuntimeError("b")])
        collaborator = TextCollaborator(provider, "m", max_retries=1)
        with pytest.raises(CollaboratorUnavailable) as exc:
            await collaborator.generate("p")
        assert isinstance(exc.value.__cause__, RuntimeError)
        assert str(exc.value.__cause__) == "b"

    async def test_no_retries(self):
        provider = ScriptedProvider([RuntimeError("a"), "unused"])
        with pytest.raises(CollaboratorUnavailable):
            await TextCollaborator(provider, "m", max_retries=0).generate("p")
        assert len(provider.requests) == 1

    async def test_timeout_raises_unavailable(self):
        provider = ScriptedProvider(["late"], delay=0.5)
        collaborator = TextCollaborator(provider, "m", timeout=0.01, max_retries=0)
        with pytest.raises(CollaboratorUnavailable):
            await collaborator.generate("p")

    async def test_model_property(self):
        assert TextCollaborator(ScriptedProvider([]), "gpt-4o-mini").model == "gpt-4o-mini"


class TestGenerateStream:
    async def test_relays_deltas(self):
        provider = ScriptedProvider([], deltas=["Hel", "", "lo"])
        collaborator = TextCollaborator(provider, "m")
        assert [c async for c in collaborator.generate_stream("p")] == ["Hel", "lo"]
        assert provider.requests[0].prompt == "p"

    async def test_early_stop_closes_provider_stream(self):
        provider = ScriptedProvider([], deltas=["a", "b", "c"])
        stream = TextCollaborator(provider, "m").generate_stream("p")

        assert await stream.__anext__() == "a"
        await stream.aclose()

        assert provider.deltas_sent == 1
        assert provider.stream_closed

    async def test_provider_error_becomes_unavailable(self):
        collaborator = TextCollaborator(BrokenStreamProvider([]), "m")
        received = []
        with pytest.raises(CollaboratorUnavailable, match="socket closed"):
            async for chunk in collaborator.generate_stream("p"):
                received.append(chunk)
        assert received == ["partial"]
