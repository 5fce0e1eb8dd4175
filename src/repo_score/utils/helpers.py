# src/repo_score/utils/helpers.py

import csv
import json
import os
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ..engine.models import ScoreModel

ALL_FORMATS = ["text", "csv", "chart", "html"]
INVALID_FORMAT_CHARS = '<>:"/\\|?*\0'


class UserInfoError(Exception):
    """Raised when the user-info mapping file cannot be used."""


class FormatError(ValueError):
    """Raised for an unknown or unusable output format token."""


def parse_datetime(dt_str: str) -> datetime | None:
    """Parses an ISO datetime string, handling 'Z' suffix for UTC."""
    if not dt_str:
        return None
    return datetime.fromisoformat(dt_str.replace("Z", "+00:00")).astimezone(
        timezone.utc
    )


def parse_date(value: str) -> datetime:
    """Parses a YYYY-MM-DD string into a UTC midnight datetime."""
    try:
        naive_dt = datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise ValueError(
            f"Invalid date '{value}'. Use the YYYY-MM-DD format."
        ) from None
    return naive_dt.replace(tzinfo=timezone.utc)


def parse_repo_path(repo_path: str) -> Tuple[str, str]:
    """Splits an 'owner/repo' argument."""
    parts = repo_path.split("/")
    if len(parts) != 2 or not all(part.strip() for part in parts):
        raise ValueError(
            f"Repository '{repo_path}' must be in 'owner/repo' form "
            "(e.g. oss2025hnu/reposcore-py)."
        )
    return parts[0].strip(), parts[1].strip()


def validate_formats(formats: Iterable[str]) -> List[str]:
    """Normalizes output format tokens. 'all' (or nothing) selects every format."""
    valid, invalid = [], []
    for token in formats:
        fmt = token.strip().lower()
        bad_chars = [c for c in fmt if c in INVALID_FORMAT_CHARS]
        if bad_chars:
            raise FormatError(
                f"Format '{fmt}' contains characters not allowed in file names: "
                + " ".join(repr(c) for c in bad_chars)
            )
        if fmt == "all" or fmt in ALL_FORMATS:
            valid.append(fmt)
        else:
            invalid.append(fmt)

    if invalid:
        raise FormatError(f"Invalid format(s): {', '.join(invalid)}")

    if not valid or "all" in valid:
        return list(ALL_FORMATS)
    # Keep the first occurrence of each
    return list(dict.fromkeys(valid))


def load_user_info(path: str) -> Dict[str, str]:
    """Loads a raw id -> display name table from a JSON object or a two-column CSV.

    Keys are lower-cased so lookups are case-insensitive.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            if os.path.splitext(path)[1].lower() == ".csv":
                mapping = _read_user_info_csv(f)
            else:
                mapping = json.load(f)
    except (OSError, json.JSONDecodeError, csv.Error, UnicodeDecodeError) as e:
        raise UserInfoError(f"Failed to read user info file {path}: {e}") from e

    if not isinstance(mapping, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in mapping.items()
    ):
        raise UserInfoError(
            f"User info file {path} must map user ids to display names."
        )
    return {k.strip().lower(): v.strip() for k, v in mapping.items()}


def _read_user_info_csv(f) -> Dict[str, str]:
    reader = csv.reader(f)
    header = next(reader, None)
    if header is None or len(header) != 2:
        raise UserInfoError("CSV user info needs a two-column header row")

    mapping = {}
    for line_no, row in enumerate(reader, start=2):
        if not row:
            continue
        if len(row) != 2:
            raise UserInfoError(f"Line {line_no}: expected 2 columns, got {len(row)}")
        mapping[row[0]] = row[1]
    return mapping


def remap_users(
    scores: Mapping[str, ScoreModel], user_info: Optional[Mapping[str, str]]
) -> Dict[str, ScoreModel]:
    """Renames users through the display-name table, summing any that collide."""
    if not user_info:
        return dict(scores)

    remapped: Dict[str, ScoreModel] = {}
    for user, score in scores.items():
        name = user_info.get(user.lower(), user)
        remapped[name] = remapped[name] + score if name in remapped else score
    return remapped


def filter_users(
    scores: Mapping[str, ScoreModel], include: Optional[Iterable[str]]
) -> Dict[str, ScoreModel]:
    """Keeps only the listed users (case-insensitive). No list keeps everyone."""
    if not include:
        return dict(scores)
    wanted = {name.lower() for name in include}
    return {user: score for user, score in scores.items() if user.lower() in wanted}
