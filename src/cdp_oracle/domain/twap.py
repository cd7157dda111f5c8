"""Time-weighted average price over accepted observations."""


def time_weighted_average(observations: list[tuple[int, int]], now: int, window: int) -> int:
    """Each observation's price holds until the next one (the last until *now*).

    Only the part of each segment inside [now - window, now] counts. Falls
    back to the latest price when the window has no duration.
    """
    if not observations:
        return 0
    start = now - window
    weighted = 0
    total = 0
    for i, (t, price) in enumerate(observations):
        seg_start = max(t, start)
        seg_end = observations[i + 1][0] if i + 1 < len(observations) else now
        if seg_end <= seg_start:
            continue
        weighted += price * (seg_end - seg_start)
        total += seg_end - seg_start
    if total == 0:
        return observations[-1][1]
    return weighted // total


def prune(observations: list[tuple[int, int]], now: int, window: int) -> list[tuple[int, int]]:
    """Drop observations that no longer influence the window.

    The newest observation at or before the window start is kept because its
    price covers the beginning of the window.
    """
    start = now - window
    kept: list[tuple[int, int]] = []
    anchor: tuple[int, int] | None = None
    for obs in observations:
        if obs[0] <= start:
            anchor = obs
        else:
            kept.append(obs)
    if anchor is not None:
        kept.insert(0, anchor)
    return kept
