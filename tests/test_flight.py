import asyncio

import pytest

from office_checkin.flight import SingleFlight


def test_concurrent_calls_share_one_execution() -> None:
    calls = []

    async def scenario():
        flight = SingleFlight()
        release = asyncio.Event()

        async def work():
            calls.append("run")
            await release.wait()
            return "fix"

        first = asyncio.create_task(flight.run("location", work))
        second = asyncio.create_task(flight.run("location", work))
        await asyncio.sleep(0)
        in_flight = flight.in_flight("location")
        release.set()
        results = await asyncio.gather(first, second)
        return in_flight, results, flight.in_flight("location")

    in_flight, results, after = asyncio.run(scenario())

    assert calls == ["run"]
    assert in_flight is True
    assert results == ["fix", "fix"]
    assert after is False


def test_sequential_calls_run_again() -> None:
    calls = []

    async def scenario():
        flight = SingleFlight()

        async def work():
            calls.append("run")
            return len(calls)

        return [await flight.run("location", work), await flight.run("location", work)]

    assert asyncio.run(scenario()) == [1, 2]


def test_failure_reaches_every_caller_and_clears_key() -> None:
    async def scenario():
        flight = SingleFlight()

        async def work():
            await asyncio.sleep(0)
            raise RuntimeError("boom")

        results = await asyncio.gather(
            flight.run("location", work),
            flight.run("location", work),
            return_exceptions=True,
        )
        return results, flight.in_flight("location")

    results, after = asyncio.run(scenario())

    assert all(isinstance(result, RuntimeError) for result in results)
    assert after is False


def test_keys_are_independent() -> None:
    async def scenario():
        flight = SingleFlight()
        release = asyncio.Event()

        async def slow():
            await release.wait()
            return "slow"

        async def fast():
            return "fast"

        pending = asyncio.create_task(flight.run("a", slow))
        await asyncio.sleep(0)
        other = await flight.run("b", fast)
        release.set()
        return other, await pending

    assert asyncio.run(scenario()) == ("fast", "slow")


@pytest.mark.parametrize("key", ["location", "check-in"])
def test_nothing_in_flight_initially(key: str) -> None:
    assert SingleFlight().in_flight(key) is False


def test_cancelled_caller_leaves_shared_call_running() -> None:
    async def scenario():
        flight = SingleFlight()
        release = asyncio.Event()

        async def work():
            await release.wait()
            return "fix"

        first = asyncio.create_task(flight.run("location", work))
        second = asyncio.create_task(flight.run("location", work))
        await asyncio.sleep(0)
        second.cancel()
        await asyncio.sleep(0)
        release.set()
        return await first, second.cancelled()

    assert asyncio.run(scenario()) == ("fix", True)
