"""
Hidden-subtree bookkeeping.

A user can hide the reports below a person ("hide subtree"). The hidden ids
are tracked per hiding root so a subtree can be revealed again, or shown
temporarily without forgetting that it is hidden.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from .index import GraphIndex

logger = logging.getLogger(__name__)


class VisibilityState:
    """
    Hidden nodes grouped by the root that hid them.

    Attributes:
        hidden_by_root: hiding root id -> ids hidden by it (root excluded)
        hidden_nodes: union of all hidden ids
        temporarily_visible_roots: hidden roots whose subtree is shown for now
        all_hidden_temporarily_visible: show every hidden node for now
    """

    def __init__(
        self,
        hidden_by_root: Optional[dict[str, set[str]]] = None,
        temporarily_visible_roots: Optional[Iterable[str]] = None,
        all_hidden_temporarily_visible: bool = False,
    ) -> None:
        self.hidden_by_root: dict[str, set[str]] = {
            str(k): {str(i) for i in v} for k, v in (hidden_by_root or {}).items()
        }
        self.hidden_nodes: set[str] = set()
        for ids in self.hidden_by_root.values():
            self.hidden_nodes |= ids
        self.temporarily_visible_roots: set[str] = {
            str(r) for r in (temporarily_visible_roots or ())
        }
        self.all_hidden_temporarily_visible: bool = bool(all_hidden_temporarily_visible)

    @classmethod
    def from_ids(cls, hidden_ids: Iterable[Any]) -> VisibilityState:
        """Wrap a plain collection of hidden ids (no temporary visibility)."""
        state = cls()
        state.hidden_nodes = {str(i) for i in hidden_ids}
        return state

    def toggle_subtree(self, root_id: Any, index: GraphIndex) -> bool:
        """
        Hide or reveal the report subtree below a person.

        The root itself stays visible as an anchor. Hiding a person without
        reports changes nothing.

        Returns:
            True if the subtree is hidden afterwards, False otherwise
        """
        rid = str(root_id)

        if rid in self.hidden_by_root:
            revealed = self.hidden_by_root.pop(rid)
            self.temporarily_visible_roots.discard(rid)
            # Ids hidden by another root stay hidden
            still_hidden: set[str] = set()
            for ids in self.hidden_by_root.values():
                still_hidden |= ids
            self.hidden_nodes -= revealed - still_hidden
            logger.debug("Revealed %d nodes below %s", len(revealed), rid)
            return False

        subtree = index.collect_report_subtree(rid)
        subtree.discard(rid)
        if not subtree:
            return False

        self.hidden_by_root[rid] = subtree
        self.hidden_nodes |= subtree
        logger.debug("Hid %d nodes below %s", len(subtree), rid)
        return True

    def toggle_temporary(self, root_id: Any) -> None:
        """Flip temporary visibility of a hidden root's subtree."""
        rid = str(root_id)
        if rid not in self.hidden_by_root:
            return
        if rid in self.temporarily_visible_roots:
            self.temporarily_visible_roots.discard(rid)
        else:
            self.temporarily_visible_roots.add(rid)

    def is_temporarily_visible(self, node_id: Any) -> bool:
        """True if a hidden node is currently shown anyway."""
        if self.all_hidden_temporarily_visible:
            return True
        nid = str(node_id)
        for rid, ids in self.hidden_by_root.items():
            if nid in ids and rid in self.temporarily_visible_roots:
                return True
        return False

    def is_hidden(self, node_id: Any) -> bool:
        """True if a node is hidden and not temporarily visible."""
        nid = str(node_id)
        if nid not in self.hidden_nodes:
            return False
        return not self.is_temporarily_visible(nid)

    @property
    def hidden_ids(self) -> frozenset[str]:
        return frozenset(self.hidden_nodes)

    def __len__(self) -> int:
        return len(self.hidden_nodes)

    def __repr__(self) -> str:
        return (
            f"VisibilityState(hidden={len(self.hidden_nodes)}, "
            f"roots={len(self.hidden_by_root)}, "
            f"temporary={len(self.temporarily_visible_roots)})"
        )


__all__ = ["VisibilityState"]
