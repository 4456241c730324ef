"""
Topic summary report.

Flattens the topic tree into a table (one row per node) and exports it as CSV.
"""

import logging
import os
from typing import Dict, List

import pandas as pd

from topic_explorer.models.topic_node import TopicNode
from topic_explorer.registry.topic_registry import TopicRegistry

logger = logging.getLogger(__name__)

COLUMNS = ["Topic", "Leaf", "Children", "Messages", "Last Seen", "Last Payload"]


def build_summary(registry: TopicRegistry, delimiter: str = "/") -> pd.DataFrame:
    """
    Build a summary table of every node below the root.

    Args:
        registry: Registry to summarize (read in one locked pass)
        delimiter: Delimiter used to join segments back into topic strings

    Returns:
        DataFrame with COLUMNS, sorted by message count (descending)
    """
    rows: List[Dict] = []
    with registry.read() as root:
        for child in root.children.values():
            _collect_rows(child, [child.name], delimiter, rows)

    if not rows:
        return pd.DataFrame(columns=COLUMNS)

    df = pd.DataFrame(rows, columns=COLUMNS)
    # Stable sort keeps traversal order among equal counts
    return df.sort_values("Messages", ascending=False, kind="stable").reset_index(drop=True)


def export_summary(registry: TopicRegistry, output_path: str, delimiter: str = "/") -> str:
    """
    Write the summary table to a CSV file.

    Args:
        registry: Registry to summarize
        output_path: Destination CSV path; parent directories are created

    Returns:
        output_path
    """
    df = build_summary(registry, delimiter)

    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    df.to_csv(output_path, index=False)
    logger.info(f"Topic summary saved to {output_path} ({len(df)} topics)")
    return output_path


def _collect_rows(node: TopicNode, parts: List[str], delimiter: str, rows: List[Dict]) -> None:
    last = node.last_message
    rows.append({
        "Topic": delimiter.join(parts),
        "Leaf": node.is_leaf,
        "Children": len(node.children),
        "Messages": len(node.messages),
        "Last Seen": last.timestamp.isoformat() if last else "",
        "Last Payload": last.payload if last else ""
    })
    for child in node.children.values():
        _collect_rows(child, parts + [child.name], delimiter, rows)
