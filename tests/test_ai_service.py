import asyncio
import json
import threading

import pytest
from aiohttp import test_utils, web

from vocabrecall.exceptions import (
    MalformedResponseError,
    MissingCredentialsError,
    RateLimitedError,
    UpstreamError,
)
from vocabrecall.models import EnrichmentResult, Phonetics, VocabItem
from vocabrecall.services import (
    AIConfig,
    GroqEnrichmentProvider,
    InMemoryTopicRepository,
    RetryingEnrichmentProvider,
    VocabStore,
    create_enrichment_provider,
)
from vocabrecall.services.ai_service import synonyms_for_prompt

PAYLOAD = {
    "meaning": "senang",
    "definition": "feeling or showing pleasure",
    "phonetics": {"us": "/ˈhæpi/", "uk": "/ˈhæpi/"},
    "examples": [
        {"type": "Compound", "text": "I smiled, and she laughed.", "translation": "..."},
        {"type": "Simple", "text": "She is happy.", "translation": "Dia senang."},
        {"type": "Poem", "text": "not a sentence type"},
        {"type": "Complex", "text": "Because it rained, we stayed.", "translation": "..."},
        {"type": "Compound-Complex", "text": "When it ended, we left, and we slept."},
    ],
    "synonymMeanings": ["gembira", "senang hati"],
}


def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


# ==================== Payload normalization ====================

def test_from_payload_orders_and_filters_examples():
    result = EnrichmentResult.from_payload(PAYLOAD)

    assert [e.type for e in result.examples] == ["Simple", "Complex", "Compound", "Compound-Complex"]
    assert result.examples[3].translation is None
    assert result.meaning == "senang"
    assert result.definition == "feeling or showing pleasure"
    assert result.synonym_meanings == ["gembira", "senang hati"]


def test_from_payload_defaults_and_legacy_phonetics():
    result = EnrichmentResult.from_payload({"phonetics": "/ˈhæpi/"})

    assert result.meaning == "n/a"
    assert result.phonetics == Phonetics(us="/ˈhæpi/", uk="/ˈhæpi/")
    assert result.examples == []
    assert result.definition is None
    assert result.synonym_meanings is None

    assert EnrichmentResult.from_payload({}).phonetics == Phonetics("n/a", "n/a")


@pytest.mark.parametrize("payload", [
    ["not", "an", "object"],
    {"examples": "Simple"},
    {"synonymMeanings": "gembira"},
])
def test_from_payload_rejects_wrong_shape(payload):
    with pytest.raises(ValueError):
        EnrichmentResult.from_payload(payload)


def test_parse_completion():
    result = GroqEnrichmentProvider.parse_completion(completion(json.dumps(PAYLOAD)))
    assert result.phonetics.uk == "/ˈhæpi/"


@pytest.mark.parametrize("body", [
    {},
    {"choices": []},
    completion("Sure! Here is your JSON: {"),
    completion(json.dumps({"examples": {"type": "Simple"}})),
])
def test_parse_completion_malformed(body):
    with pytest.raises(MalformedResponseError):
        GroqEnrichmentProvider.parse_completion(body)


def test_prompt_mentions_word_language_and_synonyms():
    provider = GroqEnrichmentProvider(AIConfig(api_key="k", target_language="Indonesian"))
    prompt = provider.build_prompt("Happy", ["joyful", "glad"])

    assert '"Happy"' in prompt
    assert "Indonesian" in prompt
    assert '"joyful", "glad"' in prompt
    assert "synonymMeanings" in prompt


def test_synonyms_for_prompt_caps_length():
    assert synonyms_for_prompt([str(n) for n in range(20)]) == [str(n) for n in range(8)]


def test_factory_wraps_provider_in_retries():
    provider = create_enrichment_provider(AIConfig(api_key="k"))
    assert isinstance(provider, RetryingEnrichmentProvider)
    assert isinstance(provider.inner, GroqEnrichmentProvider)


# ==================== HTTP ====================

@pytest.fixture
async def groq_server():
    """Start a local chat-completions endpoint answering with the given handler."""
    servers = []

    async def start(handler):
        app = web.Application()
        app.router.add_post("/chat/completions", handler)
        server = test_utils.TestServer(app)
        await server.start_server()
        servers.append(server)
        return str(server.make_url("")).rstrip("/")

    yield start

    for server in servers:
        await server.close()


async def test_missing_api_key():
    provider = GroqEnrichmentProvider(AIConfig(api_key=None))
    with pytest.raises(MissingCredentialsError):
        await provider.enrich("Happy")


async def test_enrich_success(groq_server):
    requests = []

    async def handler(request):
        requests.append((request.headers.get("Authorization"), await request.json()))
        return web.json_response(completion(json.dumps(PAYLOAD)))

    base_url = await groq_server(handler)
    async with GroqEnrichmentProvider(AIConfig(api_key="secret", base_url=base_url, model="m")) as provider:
        result = await provider.enrich("Happy", ["joyful", "glad"])

    assert result.meaning == "senang"
    auth, body = requests[0]
    assert auth == "Bearer secret"
    assert body["model"] == "m"
    assert body["response_format"] == {"type": "json_object"}
    assert body["messages"][0]["role"] == "system"


async def test_enrich_rate_limited(groq_server):
    async def handler(request):
        return web.Response(status=429, headers={"Retry-After": "7"}, text="slow down")

    base_url = await groq_server(handler)
    async with GroqEnrichmentProvider(AIConfig(api_key="k", base_url=base_url)) as provider:
        with pytest.raises(RateLimitedError) as exc_info:
            await provider.enrich("Happy")
    assert exc_info.value.retry_after == 7.0


async def test_enrich_upstream_error(groq_server):
    async def handler(request):
        return web.Response(status=503, text="overloaded")

    base_url = await groq_server(handler)
    async with GroqEnrichmentProvider(AIConfig(api_key="k", base_url=base_url)) as provider:
        with pytest.raises(UpstreamError) as exc_info:
            await provider.enrich("Happy")
    assert exc_info.value.status == 503


async def test_enrich_non_json_content(groq_server):
    async def handler(request):
        return web.json_response(completion("I cannot help with that."))

    base_url = await groq_server(handler)
    async with GroqEnrichmentProvider(AIConfig(api_key="k", base_url=base_url)) as provider:
        with pytest.raises(MalformedResponseError):
            await provider.enrich("Happy")


async def test_enrich_connection_refused():
    provider = GroqEnrichmentProvider(AIConfig(api_key="k", base_url="http://127.0.0.1:9", timeout=5))
    try:
        with pytest.raises(UpstreamError):
            await provider.enrich("Happy")
    finally:
        await provider.close()


# ==================== Synchronous callers ====================

@pytest.fixture
def threaded_groq_server():
    """Chat-completions endpoint served from its own thread, for tests without a loop."""
    loop = asyncio.new_event_loop()
    thread = threading.Thread(target=loop.run_forever, daemon=True)
    thread.start()

    async def handler(request):
        body = await request.json()
        word = body["messages"][1]["content"].split('"')[1]
        return web.json_response(completion(json.dumps({**PAYLOAD, "meaning": f"arti {word}"})))

    async def start():
        app = web.Application()
        app.router.add_post("/chat/completions", handler)
        server = test_utils.TestServer(app)
        await server.start_server()
        return server

    server = asyncio.run_coroutine_threadsafe(start(), loop).result(timeout=10)
    yield str(server.make_url("")).rstrip("/")

    asyncio.run_coroutine_threadsafe(server.close(), loop).result(timeout=10)
    loop.call_soon_threadsafe(loop.stop)
    thread.join(timeout=5)
    loop.close()


def test_sync_store_enriches_every_reveal(threaded_groq_server):
    provider = GroqEnrichmentProvider(AIConfig(api_key="k", base_url=threaded_groq_server))
    store = VocabStore(InMemoryTopicRepository(), provider)
    happy = VocabItem(word="Happy", synonyms=["glad"])
    calm = VocabItem(word="Calm", synonyms=["serene"])
    store.add_topic("Feelings", [happy, calm])
    store.confirm_preview()

    store.discover(happy.id)
    store.discover(calm.id)
    store.regenerate_enrichment(happy.id)

    assert happy.meaning == "arti Happy"
    assert calm.meaning == "arti Calm"

    store.shutdown()
    assert provider._session is None
