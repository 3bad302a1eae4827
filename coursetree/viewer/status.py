"""
Sync status renderer - Indicator for the persistence controller's status.
"""

import html

from coursetree.schemas import SyncStatus

STATUS_ICONS = {
    SyncStatus.SAVING: "🔄",
    SyncStatus.SAVED: "☁️",
    SyncStatus.ERROR: "⚠️",
    SyncStatus.IDLE: "💾",
}

STATUS_COLORS = {
    SyncStatus.SAVING: "#1976D2",
    SyncStatus.SAVED: "#388E3C",
    SyncStatus.ERROR: "#D32F2F",
    SyncStatus.IDLE: "#888",
}


def get_sync_icon(status: SyncStatus) -> str:
    return STATUS_ICONS[status]


def render_sync_indicator(status: SyncStatus, text: str) -> str:
    """Render the sync indicator shown in the header."""
    return (
        f'<span class="sync-indicator" style="color:{STATUS_COLORS[status]};">'
        f'{get_sync_icon(status)} {html.escape(text)}</span>'
    )
