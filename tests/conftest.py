from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

import pytest

T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def stamp(ts: datetime) -> str:
    return ts.strftime("%Y%m%dT%H%M%S")


def build_log_text(
    powers: Sequence[Sequence[float]],
    *,
    start_mhz: float = 88.0,
    stop_mhz: float = 108.0,
    rbw_khz: float = 10.0,
    interval_s: int = 60,
    sweep_s: int = 4,
    comments: bool = True,
    headers: Optional[List[str]] = None,
) -> str:
    """Build a log with one record per row of ``powers``."""
    lines = ["# freq(MHz),RSSI(dBm)"] if comments else []
    for i, row in enumerate(powers):
        start = T0 + timedelta(seconds=interval_s * i)
        end = start + timedelta(seconds=sweep_s)
        if headers is not None:
            lines.append(headers[i])
        else:
            lines.append(
                f"$ {start_mhz:.6f},{stop_mhz:.6f},{len(row)},{rbw_khz:.3f},{stamp(start)},{stamp(end)}"
            )
        lines.extend(f"{p:f}" for p in row)
        lines.append("")
    return "\n".join(lines) + "\n"


@pytest.fixture
def three_by_five() -> List[List[float]]:
    return [
        [-120.0, -100.0, -80.0, -60.0, -40.0],
        [-95.5, -90.25, -85.0, -30.0, -20.0],
        [-110.0, -70.0, -65.5, -50.0, -119.0],
    ]
