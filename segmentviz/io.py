"""
JSON serialization of splits and layout values.

Storage is the caller's business; these helpers only turn splits into plain
JSON-compatible structures and back, so stored splits can be handed to
``Statistics(existing_splits=...)`` later.
"""

import json
from typing import IO, Any, Dict, List, Sequence

import numpy as np

from segmentviz.elements.question import Group, Question, ResponseGroup
from segmentviz.elements.split import (
    ResponseGroupStats,
    ResponseQuestionStats,
    Split,
    SplitDiff,
)
from segmentviz.segment_viz.geometry import RectBounds
from segmentviz.segment_viz.points import Point


class SplitEncoder(json.JSONEncoder):
    def default(self, o: Any):
        if isinstance(o, Split):
            return split_to_dict(o)

        if isinstance(o, SplitDiff):
            return {
                "split_index": o.split_index,
                "total_count": o.total_count,
                "total_weight": o.total_weight,
                "response_questions": [_rq_stats_to_dict(rq) for rq in o.response_questions],
            }

        if isinstance(o, Question):
            return {
                "var_name": o.var_name,
                "battery_name": o.battery_name,
                "sub_battery": o.sub_battery,
            }

        if isinstance(o, ResponseGroup):
            return {"label": o.label, "values": sorted(o.values)}

        if isinstance(o, Point):
            return [o.split_index, o.response_group_index, o.sequence]

        if isinstance(o, RectBounds):
            return {"x": o.x, "y": o.y, "width": o.width, "height": o.height}

        if isinstance(o, (set, frozenset)):
            return sorted(o)

        # numpy scalars from the sampler and point grid
        if isinstance(o, np.integer):
            return int(o)
        if isinstance(o, np.floating):
            return float(o)

        return super().default(o)


def _group_stats_to_dict(rg: ResponseGroupStats) -> Dict[str, Any]:
    return {
        "label": rg.label,
        "values": sorted(rg.values),
        "total_count": rg.total_count,
        "total_weight": rg.total_weight,
        "proportion": rg.proportion,
    }


def _rq_stats_to_dict(rq: ResponseQuestionStats) -> Dict[str, Any]:
    return {
        "question_key": rq.question_key,
        "total_count": rq.total_count,
        "total_weight": rq.total_weight,
        "expanded": [_group_stats_to_dict(rg) for rg in rq.expanded],
        "collapsed": [_group_stats_to_dict(rg) for rg in rq.collapsed],
    }


def split_to_dict(split: Split) -> Dict[str, Any]:
    return {
        "groups": [
            {
                "question": {
                    "var_name": group.question.var_name,
                    "battery_name": group.question.battery_name,
                    "sub_battery": group.question.sub_battery,
                },
                "response_group": (
                    None
                    if group.response_group is None
                    else {
                        "label": group.response_group.label,
                        "values": sorted(group.response_group.values),
                    }
                ),
            }
            for group in split.groups
        ],
        "basis_split_indices": list(split.basis_split_indices),
        "total_count": split.total_count,
        "total_weight": split.total_weight,
        "response_questions": [_rq_stats_to_dict(rq) for rq in split.response_questions],
    }


def splits_to_dicts(splits: Sequence[Split]) -> List[Dict[str, Any]]:
    return [split_to_dict(split) for split in splits]


def _group_stats_from_dict(d: Dict[str, Any]) -> ResponseGroupStats:
    return ResponseGroupStats(
        label=d["label"],
        values=frozenset(d["values"]),
        total_count=int(d["total_count"]),
        total_weight=float(d["total_weight"]),
        proportion=float(d["proportion"]),
    )


def split_from_dict(d: Dict[str, Any]) -> Split:
    """Rebuild a Split from ``split_to_dict`` output (or its JSON round trip)."""
    groups = []
    for g in d["groups"]:
        rg = g["response_group"]
        groups.append(
            Group(
                question=Question(**g["question"]),
                response_group=None if rg is None else ResponseGroup(rg["label"], rg["values"]),
            )
        )
    return Split(
        groups=tuple(groups),
        basis_split_indices=tuple(d["basis_split_indices"]),
        total_count=int(d["total_count"]),
        total_weight=float(d["total_weight"]),
        response_questions=tuple(
            ResponseQuestionStats(
                question_key=rq["question_key"],
                total_count=int(rq["total_count"]),
                total_weight=float(rq["total_weight"]),
                expanded=tuple(_group_stats_from_dict(rg) for rg in rq["expanded"]),
                collapsed=tuple(_group_stats_from_dict(rg) for rg in rq["collapsed"]),
            )
            for rq in d["response_questions"]
        ),
    )


def dump_json(obj: Any, f: IO[str]):
    json.dump(obj, f, cls=SplitEncoder)


def write_json(obj: Any, path: str):
    with open(path, mode="w") as f:
        dump_json(obj, f)


def load_splits(f: IO[str]) -> List[Split]:
    return [split_from_dict(d) for d in json.load(f)]


def read_splits(path: str) -> List[Split]:
    with open(path) as f:
        return load_splits(f)
