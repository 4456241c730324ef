"""
Presentation modules for Topic Explorer.

- Tree view: indented topic tree with message history
- Table view: one line per received sample
- Report: tabular summary of the tree, exportable to CSV
"""
