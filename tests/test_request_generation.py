import asyncio

import pytest
from tutorslots.core.exceptions import StaleResponseError
from tutorslots.core.request_generation import RequestGeneration


async def _answer(value, gate=None):
    if gate is not None:
        await gate.wait()
    return value


def test_generations_are_monotonic():
    generations = RequestGeneration()

    first = generations.begin()
    second = generations.begin()

    assert second > first
    assert generations.is_current(second)
    assert not generations.is_current(first)


@pytest.mark.asyncio
async def test_guard_returns_current_result():
    generations = RequestGeneration()

    assert await generations.guard(_answer(["10:00"])) == ["10:00"]
    assert generations.current == 1


@pytest.mark.asyncio
async def test_superseded_lookup_is_discarded():
    generations = RequestGeneration()
    gate = asyncio.Event()

    older = asyncio.create_task(generations.guard(_answer("monday", gate)))
    await asyncio.sleep(0)
    newer = await generations.guard(_answer("tuesday"))
    gate.set()

    assert newer == "tuesday"
    with pytest.raises(StaleResponseError) as exc_info:
        await older
    assert exc_info.value.details == {"generation": 1, "current": 2}
