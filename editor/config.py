"""
Tuneable parameters for an editing session.
"""

from dataclasses import dataclass


@dataclass
class EditorConfig:
    """
    All tuneable parameters for the editor core.

    Attributes:
        canvas_width:          Fixed canvas width in pixels; page height follows aspect ratio.
        default_canvas_height: Canvas height before any import (A4 at 72 dpi).
        locate_threshold:      Max click-to-run-centre distance (canvas px) for a match.
        dedup_tolerance:       Per-axis distance (canvas px) under which a detected run
                               resolves to an existing text element.
        mask_padding:          Canvas pixels added around each masked region.
        debounce_seconds:      Quiescence window before a coalesced remask runs.
        settle_timeout:        Upper bound on waiting for the surface during export.
        snapshot_scale:        Resolution multiplier for export snapshots.
        default_font_family:   Font family for new text elements.
        default_font_size:     Font size for manual text and the detection fallback.
        default_align:         Alignment for new text elements.
        highlight_color:       Fill behind highlighted text.
        disable_tqdm:          Suppress progress bars.
    """

    canvas_width: int = 595
    default_canvas_height: int = 842

    locate_threshold: float = 50.0
    dedup_tolerance: float = 10.0

    mask_padding: float = 2.0
    debounce_seconds: float = 0.5

    settle_timeout: float = 0.1
    snapshot_scale: float = 2.0

    default_font_family: str = "Arial"
    default_font_size: int = 16
    default_align: str = "left"
    highlight_color: str = "#ffff99"

    disable_tqdm: bool = False

    @property
    def default_canvas_size(self):
        return self.canvas_width, self.default_canvas_height
