"""
Metric catalog: the flat list and the Group -> Category -> Type -> Name
tree that the metric pickers and chat context are built from.
"""

import logging
from typing import Iterable

from .models import MetricCatalog, MetricRecord

logger = logging.getLogger(__name__)


def build_catalog(records: Iterable[MetricRecord]) -> MetricCatalog:
    """Build the flat list and hierarchical tree in a single pass.

    When two records share the full (group, category, type, name) path the
    later one occupies the tree leaf. The flat list keeps both, and the
    uid that lost its leaf is reported in `shadowed_uids`.
    """
    flat = tuple(records)

    nodes: dict[tuple[str, str, str, str], MetricRecord] = {}
    shadowed = []
    for record in flat:
        previous = nodes.get(record.path)
        if previous is not None:
            shadowed.append(previous.uid)
            logger.warning(
                "Metric path %s: uid %s shadows uid %s in the tree",
                " / ".join(record.path), record.uid, previous.uid,
            )
        nodes[record.path] = record

    tree: dict = {}
    for (group, category, mtype, name), record in nodes.items():
        leaf_parent = tree.setdefault(group, {}).setdefault(category, {}).setdefault(mtype, {})
        leaf_parent[name] = {
            "uid": record.uid,
            "unit": record.unit,
            "values": list(record.values),
        }

    by_uid: dict[str, MetricRecord] = {}
    for record in flat:
        if record.uid in by_uid:
            logger.warning("Duplicate uid %s; the later row wins uid lookups", record.uid)
        by_uid[record.uid] = record

    logger.info(
        "Built catalog with %d records in %d groups (%d shadowed)",
        len(flat), len(tree), len(shadowed),
    )
    return MetricCatalog(
        records=flat,
        tree=tree,
        shadowed_uids=tuple(shadowed),
        _by_uid=by_uid,
    )


def iter_leaves(catalog: MetricCatalog):
    """Yield (group, category, type, name, leaf) for every tree leaf."""
    for group, categories in catalog.tree.items():
        for category, types in categories.items():
            for mtype, names in types.items():
                for name, leaf in names.items():
                    yield group, category, mtype, name, leaf
