"""
Color slot rows and label normalization.
"""

from dataclasses import dataclass

from core.config import LABEL_MARKER


@dataclass(frozen=True)
class ColorSlot:
    """One row of the colors sheet."""

    color_id: int
    label: str
    background: str
    foreground: str
    row_index: int  # 1-based worksheet row

    @property
    def is_free(self) -> bool:
        return not self.label


def normalize_label(label: str | None) -> str:
    """
    Normalize a label for matching and storage.

    Strips whitespace and one leading '#': " #ClientA " -> "ClientA".
    """
    if not label:
        return ""
    label = label.strip()
    if label.startswith(LABEL_MARKER):
        label = label[len(LABEL_MARKER):]
    return label.strip()
