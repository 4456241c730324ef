"""
Topic tree data model.

A TopicNode is one path segment of a topic; its messages are the samples
received on the topic that terminates exactly at that node.
"""

from dataclasses import dataclass, field
from typing import Dict, List
from datetime import datetime


@dataclass
class Message:
    """A single received payload with its arrival time."""
    timestamp: datetime  # Local arrival time, not the publisher's clock
    payload: str

    def format_time(self, fmt: str = "%H:%M:%S") -> str:
        return self.timestamp.strftime(fmt)


@dataclass
class TopicNode:
    """
    A node in the topic tree.

    Each node can have children (subtopics) and store messages with timestamps.
    A node may be both a leaf and a parent, since "a/b" and "a/b/c" can both
    be published.
    """
    name: str
    children: Dict[str, "TopicNode"] = field(default_factory=dict)
    is_leaf: bool = False
    messages: List[Message] = field(default_factory=list)

    def child(self, segment: str) -> "TopicNode":
        """Return the child for segment, creating it on first use."""
        node = self.children.get(segment)
        if node is None:
            node = TopicNode(name=segment)
            self.children[segment] = node
        return node

    @property
    def last_message(self):
        return self.messages[-1] if self.messages else None
