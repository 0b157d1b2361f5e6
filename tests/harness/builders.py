"""Builders for Prometheus result values used across tests."""

from peat.prometheus import Sample, SamplePair, SampleStream

BASE_TS = 1_700_000_000.0


def make_sample(name: str, value: float, timestamp: float = BASE_TS, **labels) -> Sample:
    metric = {"__name__": name, **labels} if name else dict(labels)
    return Sample(metric=metric, value=value, timestamp=timestamp)


def make_stream(name: str, values, start: float = BASE_TS, step: float = 60.0, **labels) -> SampleStream:
    """One series with *values* spaced *step* seconds apart."""
    metric = {"__name__": name, **labels} if name else dict(labels)
    pairs = tuple(SamplePair(timestamp=start + i * step, value=float(v)) for i, v in enumerate(values))
    return SampleStream(metric=metric, values=pairs)


def make_matrix(**series) -> list[SampleStream]:
    """make_matrix(metric_a=[1, 2], metric_b=[3, 4]) -> streams in keyword order."""
    return [make_stream(name, values) for name, values in series.items()]
