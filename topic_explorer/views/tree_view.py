"""
Tree view.

Renders the topic tree as indented text, the terminal counterpart of a
collapsible tree widget.
"""

from typing import List

from topic_explorer.models.topic_node import TopicNode
from topic_explorer.registry.topic_registry import TopicRegistry

INDENT = "  "
NO_MESSAGE = "No message received"


def render_tree(node: TopicNode, indent: int = 0, time_format: str = "%H:%M:%S") -> List[str]:
    """
    Render node and its subtree.

    Nodes with children list their children in insertion order; nodes
    without children list their messages in arrival order.

    Args:
        node: Subtree root
        indent: Depth of node
        time_format: strftime format of message timestamps

    Returns:
        One string per output line
    """
    pad = INDENT * indent
    lines = [f"{pad}{node.name}"]

    if node.children:
        for child in node.children.values():
            lines.extend(render_tree(child, indent + 1, time_format))
    elif not node.messages:
        lines.append(f"{pad}{INDENT}{NO_MESSAGE}")
    else:
        for message in node.messages:
            lines.append(f"{pad}{INDENT}{message.format_time(time_format)}: {message.payload}")

    return lines


def render_registry(registry: TopicRegistry, time_format: str = "%H:%M:%S") -> str:
    """Render the whole registry in one locked traversal pass."""
    with registry.read() as root:
        return "\n".join(render_tree(root, 0, time_format))
