import pandas as pd
from datetime import date, timedelta

from analytics.adherence import STATUS_GREEN, STATUS_NONE, AdherenceLedger, to_date

HISTORY_COLUMNS = [
    "date",
    "status",
    "exercises_on_target",
    "total_exercises",
    "timed_sessions",
    "exercise_sessions",
    "any_logged",
    "on_target",
]

WEEKLY_COLUMNS = ["week_start", "days", "days_logged", "days_on_target", "timed_sessions", "compliance"]


def build_history_frame(ledger: AdherenceLedger, exercises, start, end) -> pd.DataFrame:
    """
    Daily adherence summaries for every date in [start, end].
    Future dates are kept with status 'none' so the frame stays contiguous.
    """
    start_d, end_d = to_date(start), to_date(end)
    if end_d < start_d:
        return pd.DataFrame(columns=HISTORY_COLUMNS)

    catalog = list(exercises)
    rows = []
    day = start_d
    while day <= end_d:
        summary = ledger.summarize(day, catalog)
        status = ledger.status(day, catalog)
        rows.append({
            "date": day,
            "status": status,
            "exercises_on_target": summary.exercises_on_target,
            "total_exercises": summary.total_exercises,
            "timed_sessions": summary.timed_sessions_logged,
            "exercise_sessions": summary.total_exercise_sessions,
            "any_logged": summary.any_logged,
            "on_target": status == STATUS_GREEN,
        })
        day += timedelta(days=1)

    return pd.DataFrame(rows, columns=HISTORY_COLUMNS)


def recent_history(ledger: AdherenceLedger, exercises, days: int = 28) -> pd.DataFrame:
    end = ledger.clock.today()
    start = end - timedelta(days=max(1, int(days)) - 1)
    return build_history_frame(ledger, exercises, start, end)


def streak_lengths(series: pd.Series) -> tuple[int, int]:
    """(current, longest) run of truthy values, current counted from the end."""
    longest = 0
    current = 0
    for val in series.fillna(False).tolist():
        if bool(val):
            current += 1
            longest = max(longest, current)
        else:
            current = 0
    return current, longest


def build_weekly_adherence(history: pd.DataFrame) -> pd.DataFrame:
    """Monday-based weekly roll-up of a history frame."""
    if history is None or history.empty:
        return pd.DataFrame(columns=WEEKLY_COLUMNS)

    tmp = history[history["status"] != STATUS_NONE].copy()
    if tmp.empty:
        return pd.DataFrame(columns=WEEKLY_COLUMNS)

    tmp["date"] = pd.to_datetime(tmp["date"])
    tmp["week_start"] = tmp["date"] - pd.to_timedelta(tmp["date"].dt.weekday, unit="D")

    agg = tmp.groupby("week_start").agg(
        days=("date", "count"),
        days_logged=("any_logged", "sum"),
        days_on_target=("on_target", "sum"),
        timed_sessions=("timed_sessions", "sum"),
    )
    agg = agg.reset_index().sort_values("week_start")
    agg["compliance"] = agg["days_on_target"] / agg["days"]
    agg["week_start"] = agg["week_start"].dt.date
    return agg[WEEKLY_COLUMNS].reset_index(drop=True)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    first = date(year, month, 1)
    nxt = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return first, nxt - timedelta(days=1)
