from __future__ import annotations

import re

import pandas as pd

INCOME_BRACKETS: list[str] = [
    "Less than $15,000",
    "$15,000-$24,999",
    "$25,000-$34,999",
    "$35,000-$49,999",
    "$50,000-$74,999",
    "$75,000-$99,999",
    "$100,000-$149,999",
    "$150,000 or more",
]
INCOME_BRACKET_LOWER_BOUNDS: list[int] = [
    0,
    15_000,
    25_000,
    35_000,
    50_000,
    75_000,
    100_000,
    150_000,
]

DOLLAR_RE = re.compile(r"\$\s*([\d,]+)")


def income_lower_bound(raw_label: str) -> int:
    """Lower dollar bound of a CTPP income range label."""
    text = str(raw_label).strip()
    if text.lower().startswith(("less than", "under")):
        return 0
    match = DOLLAR_RE.search(text)
    if match is None:
        raise ValueError(f"Unrecognized household income label: {raw_label!r}")
    return int(match.group(1).replace(",", ""))


def income_bracket(raw_label: str) -> str:
    lower = income_lower_bound(raw_label)
    bracket = INCOME_BRACKETS[0]
    for label, bound in zip(INCOME_BRACKETS, INCOME_BRACKET_LOWER_BOUNDS):
        if lower >= bound:
            bracket = label
    return bracket


def income_bracket_dtype() -> pd.CategoricalDtype:
    return pd.CategoricalDtype(categories=INCOME_BRACKETS, ordered=True)


def assign_income_brackets(df: pd.DataFrame) -> pd.DataFrame:
    """Collapse fine income ranges into the eight ordered brackets."""
    working = df.copy()
    brackets = working["group_category"].map(income_bracket)
    working["group_category"] = brackets.astype(income_bracket_dtype())
    return working
