"""Tests for search, disambiguation and version selection."""

import pytest

from minebrew.exceptions import APIError, NotFoundError, VersionNotAcceptableError
from minebrew.models import SearchResponse
from minebrew.services import ModResolver
from tests.fakes import FakeModClient, ScriptedPrompter, make_hit, make_version

SODIUM_HITS = [
    make_hit("P1", "sodium", "Sodium"),
    make_hit("P2", "sodium-extra", "Sodiun"),
    make_hit("P3", "sodiumx", "Sodium X"),
]


def _resolver(client: FakeModClient, answers=None) -> ModResolver:
    return ModResolver(client, prompter=ScriptedPrompter(answers))


def test_disambiguate_single_hit_does_not_prompt(client: FakeModClient) -> None:
    prompter = ScriptedPrompter()
    resolver = ModResolver(client, prompter=prompter)
    response = SearchResponse("sodium", [make_hit("P1", "sodium", "Sodium")])

    hit = resolver.disambiguate(response)

    assert hit.project_id == "P1"
    assert prompter.reads == 0
    assert len(response) == 0


def test_disambiguate_filters_distant_hits_before_counting(client: FakeModClient) -> None:
    response = SearchResponse(
        "sodium",
        [make_hit("P1", "sodium", "Sodium"), make_hit("P9", "iris", "Iris Shaders")],
    )

    hit = _resolver(client).disambiguate(response)

    assert hit.project_id == "P1"


def test_disambiguate_no_match_raises_not_found(client: FakeModClient) -> None:
    response = SearchResponse("sodium", [make_hit("P9", "iris", "Iris Shaders")])

    with pytest.raises(NotFoundError) as excinfo:
        _resolver(client).disambiguate(response)

    assert excinfo.value.query == "sodium"
    assert "sodium" in str(excinfo.value)


def test_disambiguate_prompts_and_uses_numbered_choice(client: FakeModClient) -> None:
    prompter = ScriptedPrompter(["2"])
    resolver = ModResolver(client, prompter=prompter)

    hit = resolver.disambiguate(SearchResponse("sodium", list(SODIUM_HITS)))

    assert hit.project_id == "P2"
    assert "\t1) Sodium" in prompter.output
    assert "\t3) Sodium X" in prompter.output


def test_disambiguate_blank_answer_picks_first(client: FakeModClient) -> None:
    hit = _resolver(client, [""]).disambiguate(SearchResponse("sodium", list(SODIUM_HITS)))

    assert hit.project_id == "P1"


def test_disambiguate_reprompts_on_bad_input(client: FakeModClient) -> None:
    prompter = ScriptedPrompter(["abc", "0", "4", "3"])
    resolver = ModResolver(client, prompter=prompter)

    hit = resolver.disambiguate(SearchResponse("sodium", list(SODIUM_HITS)))

    assert hit.project_id == "P3"
    assert prompter.reads == 4


def test_select_version_skips_alpha_and_non_primary(client: FakeModClient) -> None:
    versions = [
        make_version(project_id="P1", version_id="alpha", version_type="alpha"),
        make_version(project_id="P1", version_id="noprimary", primary=False),
        make_version(project_id="P1", version_id="beta", version_type="beta"),
        make_version(project_id="P1", version_id="release"),
    ]

    chosen = _resolver(client).select_version("P1", "1.19", versions)

    assert chosen.id == "beta"


def test_select_version_without_candidates_raises(client: FakeModClient) -> None:
    versions = [make_version(project_id="P1", version_type="alpha")]

    with pytest.raises(VersionNotAcceptableError) as excinfo:
        _resolver(client).select_version("P1", "1.19", versions)

    assert excinfo.value.project_id == "P1"


async def test_resolve_version_never_returns_alpha(client: FakeModClient) -> None:
    client.versions["P1"] = [
        make_version(project_id="P1", version_id="a", version_type="alpha"),
        make_version(project_id="P1", version_id="r"),
    ]

    version = await _resolver(client).resolve_version("P1", "1.19")

    assert version.id == "r"


async def test_resolve_version_with_no_versions_raises(client: FakeModClient) -> None:
    with pytest.raises(VersionNotAcceptableError):
        await _resolver(client).resolve_version("P1", "1.19")


async def test_resolve_runs_full_pipeline_and_dedupes(client: FakeModClient) -> None:
    client.hits["sodium"] = [make_hit("P1", "sodium", "Sodium")]
    client.hits["Sodium"] = [make_hit("P1", "sodium", "Sodium")]
    client.hits["lithium"] = [make_hit("P2", "lithium", "Lithium")]
    client.versions["P1"] = [make_version(project_id="P1")]
    client.versions["P2"] = [make_version(project_id="P2")]

    versions = await _resolver(client).resolve(["sodium", "Sodium", "lithium"], "1.19")

    assert sorted(v.project_id for v in versions) == ["P1", "P2"]
    assert [c for c in client.calls if c[0] == "list_versions"].count(
        ("list_versions", "P1")
    ) == 1


async def test_search_failure_is_fatal(client: FakeModClient) -> None:
    client.hits["sodium"] = [make_hit("P1", "sodium")]
    client.hits["broken"] = APIError("network down")

    with pytest.raises(APIError):
        await _resolver(client).search(["sodium", "broken"], "1.19")


async def test_resolve_unknown_query_is_fatal(client: FakeModClient) -> None:
    client.hits["sodium"] = [make_hit("P1", "sodium")]
    client.versions["P1"] = [make_version(project_id="P1")]

    with pytest.raises(NotFoundError):
        await _resolver(client).resolve(["sodium", "zzzzzzzz"], "1.19")

    assert not [c for c in client.calls if c[0] == "list_versions"]
