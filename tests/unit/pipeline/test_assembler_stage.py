import pytest

from concat_file.core.types import (
    Fragment,
    ResolvedCommand,
    ResolvedFragment,
    SortedCommand,
    Success,
    Target,
)
from concat_file.pipeline.assembler import Assembler
from concat_file.pipeline.registries import ContentRegistry, EvaluationRun


def _sorted(make_matched, *contents: str) -> SortedCommand:
    target = Target(path="/tmp/out")
    matched = make_matched(target, Fragment(name="x", target="/tmp/out", content=""))
    ordered = tuple(
        ResolvedFragment(order=str(i), name=f"f{i}", content=c)
        for i, c in enumerate(contents)
    )
    resolved = ResolvedCommand(matched=matched, resolved=ordered)
    return SortedCommand(resolved=resolved, ordered=ordered)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_concatenates_without_separators(make_matched):
    result = await Assembler().handle(_sorted(make_matched, "a", "b\n", "", "c"))
    assert isinstance(result, Success)
    assert result.value.content == "ab\nc"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_no_fragments_yields_empty_content(make_matched):
    result = await Assembler().handle(_sorted(make_matched))
    assert isinstance(result, Success)
    assert result.value.content == ""


@pytest.mark.unit
@pytest.mark.asyncio
async def test_first_assembly_in_a_run_is_authoritative(make_matched):
    registry = ContentRegistry()
    assembler = Assembler(registry)

    first = await assembler.handle(_sorted(make_matched, "one"))
    second = await assembler.handle(_sorted(make_matched, "two"))

    assert isinstance(first, Success)
    assert isinstance(second, Success)
    assert second.value.content == "one"
    assert registry.get("Concat_file[/tmp/out]") == "one"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_cached_empty_content_is_reused(make_matched):
    registry = ContentRegistry()
    assembler = Assembler(registry)
    await assembler.handle(_sorted(make_matched))
    again = await assembler.handle(_sorted(make_matched, "late"))
    assert isinstance(again, Success)
    assert again.value.content == ""


@pytest.mark.unit
def test_evaluation_run_reset_clears_registries():
    run = EvaluationRun()
    run.matches.set("k", ())
    run.contents.set("k", "v")
    old_id = run.run_id

    new_id = run.reset()

    assert new_id == run.run_id
    assert new_id != old_id
    assert run.matches.get("k") is None
    assert run.contents.get("k") is None
