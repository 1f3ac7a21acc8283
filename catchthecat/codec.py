"""Compact, lossless encoding of competition reports.

Boards are run-length encoded ("3.#2." == "...#.."), usernames are replaced by
indexes into a top-level ``users`` list, turns become 0 (cat) / 1 (catcher),
and absent move fields are omitted instead of written as null.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from arena.errors import ReportFormatError
from arena.serialize import json_dumps, load_json_object

from .board import Position, Turn
from .moves import FailureKind, MoveFailure, MoveSuccess
from .reports import CompetitionReport, InitialState, MatchReport, MoveReport, UserScore

_TURN_CODES: dict[Turn, int] = {Turn.CAT: 0, Turn.CATCHER: 1}
_CODE_TURNS: dict[int, Turn] = {code: turn for turn, code in _TURN_CODES.items()}


def compress_board(board: str) -> str:
    """Run-length encode a board string; runs of one keep no count."""
    parts: list[str] = []
    index = 0
    while index < len(board):
        symbol = board[index]
        run_end = index
        while run_end < len(board) and board[run_end] == symbol:
            run_end += 1
        count = run_end - index
        parts.append(f"{count}{symbol}" if count > 1 else symbol)
        index = run_end
    return "".join(parts)


def decompress_board(compressed: str) -> str:
    """Inverse of `compress_board`: optional decimal count, then one symbol."""
    parts: list[str] = []
    index = 0
    while index < len(compressed):
        start = index
        while index < len(compressed) and compressed[index].isdigit():
            index += 1
        count = int(compressed[start:index]) if index > start else 1
        if index < len(compressed):
            parts.append(compressed[index] * count)
            index += 1
    return "".join(parts)


def _collect_users(report: CompetitionReport) -> dict[str, int]:
    users: dict[str, int] = {}
    for match in report.matches:
        for username in (match.cat, match.catcher, *(move.username for move in match.moves)):
            users.setdefault(username, len(users))
    for score in report.high_scores:
        users.setdefault(score.username, len(users))
    return users


def _compact_move(move: MoveReport, users: Mapping[str, int]) -> dict[str, Any]:
    payload: dict[str, Any] = {"u": users[move.username], "t": _TURN_CODES[move.turn], "tm": move.time}
    if move.move is not None:
        payload["mv"] = move.move.to_dict()
    if isinstance(move.result, MoveFailure):
        payload["e"] = move.result.reason
        payload["k"] = move.result.kind.value
    return payload


def _compact_match(match: MatchReport, users: Mapping[str, int]) -> dict[str, Any]:
    return {
        "m": [_compact_move(move, users) for move in match.moves],
        "c": users[match.cat],
        "ch": users[match.catcher],
        "cms": match.cat_move_score,
        "chs": match.catcher_move_score,
        "cts": match.cat_time_score,
        "chts": match.catcher_time_score,
        "init": {
            "b": compress_board(match.initial_state.board),
            "cp": match.initial_state.cat_position.to_dict(),
            "t": _TURN_CODES[match.initial_state.turn],
        },
    }


def _compact_score(score: UserScore, users: Mapping[str, int]) -> dict[str, Any]:
    return {
        "u": users[score.username],
        "cms": score.cat_move_score,
        "chs": score.catcher_move_score,
        "cts": score.cat_time_score,
        "chts": score.catcher_time_score,
        "cs": score.cat_score,
        "chs2": score.catcher_score,
        "ts": score.total_score,
        "cw": score.cat_wins,
        "chw": score.catcher_wins,
    }


def compact_report(report: CompetitionReport) -> dict[str, Any]:
    """Encode a report into the persisted document shape."""
    users = _collect_users(report)
    return {
        "users": list(users),
        "matches": [_compact_match(match, users) for match in report.matches],
        "highScores": [_compact_score(score, users) for score in report.high_scores],
    }


def _user(users: list[str], index: Any) -> str:
    if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(users):
        raise ReportFormatError(f"User index {index!r} is out of range for {len(users)} users.")
    return users[index]


def _turn(code: Any) -> Turn:
    if code not in _CODE_TURNS:
        raise ReportFormatError(f"Unknown turn code {code!r}.")
    return _CODE_TURNS[code]


def _expand_move(data: Mapping[str, Any], users: list[str]) -> MoveReport:
    position = Position.from_dict(data["mv"]) if "mv" in data else None
    if "e" in data:
        result: MoveSuccess | MoveFailure = MoveFailure(
            kind=FailureKind(data.get("k", FailureKind.PROCESS_ERROR.value)),
            reason=str(data["e"]),
            position=position,
        )
    elif position is not None:
        result = MoveSuccess(position=position)
    else:
        raise ReportFormatError("Move entry has neither a position nor an error.")
    return MoveReport(username=_user(users, data["u"]), turn=_turn(data["t"]), time=data["tm"], result=result)


def _expand_match(data: Mapping[str, Any], users: list[str]) -> MatchReport:
    init = data["init"]
    return MatchReport(
        cat=_user(users, data["c"]),
        catcher=_user(users, data["ch"]),
        initial_state=InitialState(
            board=decompress_board(init["b"]),
            cat_position=Position.from_dict(init["cp"]),
            turn=_turn(init["t"]),
        ),
        moves=[_expand_move(move, users) for move in data["m"]],
        cat_move_score=data["cms"],
        catcher_move_score=data["chs"],
        cat_time_score=data["cts"],
        catcher_time_score=data["chts"],
    )


def _expand_score(data: Mapping[str, Any], users: list[str]) -> UserScore:
    return UserScore(
        username=_user(users, data["u"]),
        cat_move_score=data["cms"],
        catcher_move_score=data["chs"],
        cat_time_score=data["cts"],
        catcher_time_score=data["chts"],
        cat_score=data["cs"],
        catcher_score=data["chs2"],
        total_score=data["ts"],
        cat_wins=data.get("cw", 0),
        catcher_wins=data.get("chw", 0),
    )


def expand_report(document: Mapping[str, Any]) -> CompetitionReport:
    """Decode a persisted document back into a `CompetitionReport`."""
    missing = [key for key in ("users", "matches", "highScores") if key not in document]
    if missing:
        raise ReportFormatError(f"Report document is missing fields: {missing}")
    users = [str(user) for user in document["users"]]
    try:
        return CompetitionReport(
            matches=[_expand_match(match, users) for match in document["matches"]],
            high_scores=[_expand_score(score, users) for score in document["highScores"]],
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ReportFormatError(f"Malformed report document: {exc!r}") from exc


def dumps_report(report: CompetitionReport, *, indent: int | None = None) -> str:
    return json_dumps(compact_report(report), indent=indent)


def loads_report(text: str) -> CompetitionReport:
    return expand_report(load_json_object(text, "Report"))


def write_report(path: str | Path, report: CompetitionReport, *, indent: int | None = None) -> Path:
    """Write the compact document, replacing `path` atomically."""
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    temp = output_path.with_suffix(output_path.suffix + ".tmp")
    temp.write_text(dumps_report(report, indent=indent), encoding="utf-8")
    temp.replace(output_path)
    return output_path


def read_report(path: str | Path) -> CompetitionReport:
    return loads_report(Path(path).read_text(encoding="utf-8"))
