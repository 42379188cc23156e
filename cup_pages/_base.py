"""Abstract base for tree sources."""

from __future__ import annotations

from abc import ABC, abstractmethod


class TreeSource(ABC):
    """Interface for anything that can hand page objects a CUP tree.

    Page objects never hold on to a tree.  Every query calls get_tree()
    again, so what they see is whatever the source reports at read time.
    """

    @abstractmethod
    def get_tree(self) -> list[dict]:
        """Return the current list of CUP root nodes.

        Each node is a dict with at least ``id`` and ``role``, and
        optionally ``name``, ``value``, ``states``, ``attributes`` and
        ``children``.
        """
        ...
