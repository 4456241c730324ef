"""
Topic Registry - in-memory index of every topic seen on the network.

Owns the topic tree and its message history. Writes come from the ingestion
coordinator, reads from the presentation layer; both go through one lock.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional, Sequence

from topic_explorer.models.topic_node import Message, TopicNode

logger = logging.getLogger(__name__)


class RegistryPoisonedError(RuntimeError):
    """Raised once a write failed mid-mutation; the tree can't be trusted."""


class TopicRegistry:
    """
    Concurrent topic trie keyed by path segments.

    The whole tree is guarded by a single lock, held for the duration of one
    insert or one traversal pass. Nodes are created lazily and never removed.
    """

    def __init__(self, root_name: str = "root"):
        """
        Initialize an empty registry.

        Args:
            root_name: Display name of the root node
        """
        self.root_name = root_name
        self.root = TopicNode(name=root_name)
        self._lock = threading.Lock()
        self._poisoned: Optional[BaseException] = None

        logger.debug(f"Initialized TopicRegistry with root '{root_name}'")

    def insert(self, path: Sequence[str]) -> TopicNode:
        """
        Create (idempotently) the nodes for path and mark the last one as leaf.

        Args:
            path: Already-split topic segments; an empty path marks the root

        Returns:
            The node at the full path
        """
        with self._writing():
            return self._insert(self.root, path)

    def add_message(
        self,
        path: Sequence[str],
        payload: str,
        timestamp: Optional[datetime] = None
    ) -> TopicNode:
        """
        Append a message to the node at path, creating the path if needed.

        Args:
            path: Already-split topic segments
            payload: Display text of the payload
            timestamp: Arrival time (defaults to now)

        Returns:
            The node that received the message
        """
        if timestamp is None:
            timestamp = datetime.now().astimezone()

        with self._writing():
            node = self._insert(self.root, path)
            node.messages.append(Message(timestamp=timestamp, payload=payload))
            return node

    @contextmanager
    def read(self) -> Iterator[TopicNode]:
        """
        Hold the registry lock for one traversal pass and yield the root.

        Callers must not mutate any node.
        """
        with self._lock:
            self._check_usable()
            yield self.root

    def find(self, path: Sequence[str]) -> Optional[TopicNode]:
        """Return the node at path, or None if it was never inserted."""
        with self.read() as node:
            for segment in path:
                node = node.children.get(segment)
                if node is None:
                    return None
            return node

    def topics(self, delimiter: str = "/") -> List[str]:
        """Full topic strings of all leaf-marked nodes, in traversal order."""
        found = []
        with self.read() as root:
            stack = [(root, None)]
            while stack:
                node, parts = stack.pop()
                if parts is not None and node.is_leaf:
                    found.append(delimiter.join(parts))
                base = parts if parts is not None else []
                for child in reversed(list(node.children.values())):
                    stack.append((child, base + [child.name]))
        return found

    def node_count(self) -> int:
        """Number of nodes below the root."""
        with self.read() as root:
            return self._count(root, lambda n: 1) - 1

    def message_count(self) -> int:
        """Total number of messages held in the tree."""
        with self.read() as root:
            return self._count(root, lambda n: len(n.messages))

    def reset(self) -> None:
        """Drop the whole tree and start again from an empty root."""
        with self._lock:
            self.root = TopicNode(name=self.root_name)
            self._poisoned = None
        logger.info("Topic registry reset")

    @contextmanager
    def _writing(self):
        with self._lock:
            self._check_usable()
            try:
                yield
            except Exception as e:
                self._poisoned = e
                logger.critical(f"Registry write failed mid-mutation: {e!r}")
                raise

    def _check_usable(self) -> None:
        if self._poisoned is not None:
            raise RegistryPoisonedError(
                f"Topic registry is unusable after a failed write: {self._poisoned!r}"
            )

    def _insert(self, node: TopicNode, path: Sequence[str]) -> TopicNode:
        if not path:
            node.is_leaf = True
            return node
        return self._insert(node.child(path[0]), path[1:])

    def _count(self, node: TopicNode, weight) -> int:
        return weight(node) + sum(
            self._count(child, weight) for child in node.children.values()
        )
