"""
Editor collaborators — the pieces the presentation layer drives.

    save_operation  — save runner with loading/error state and retries
    action_channel  — host → detail-editor save/cancel requests
    help_content    — tooltip text keyed by (category, key)
"""

from designer.editor.action_channel import EditorActionChannel
from designer.editor.help_content import HelpContent, get_help, operator_help
from designer.editor.save_operation import SaveOperation

__all__ = [
    "EditorActionChannel",
    "HelpContent",
    "SaveOperation",
    "get_help",
    "operator_help",
]
