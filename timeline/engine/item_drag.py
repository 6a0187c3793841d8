"""
Single-item drag - live preview of one item being moved along the axis.
"""

from dataclasses import dataclass, replace
from datetime import datetime

from .coordinates import shift_by_drag
from .items import InvalidItemError, ScheduledItem, minutes_between


@dataclass(frozen=True)
class ItemDrag:
    item: ScheduledItem
    original_start: datetime
    original_end: datetime
    preview_start: datetime
    preview_end: datetime
    delta_pixels: float = 0.0

    @classmethod
    def begin(cls, item: ScheduledItem) -> "ItemDrag":
        if item.is_external:
            raise InvalidItemError(f"Item {item.id} is external and cannot be moved")
        return cls(
            item=item,
            original_start=item.start_time,
            original_end=item.end_time,
            preview_start=item.start_time,
            preview_end=item.end_time,
        )

    def moved_to(
        self, delta_pixels: float, pixels_per_minute: float, grid_minutes: int
    ) -> "ItemDrag":
        """Preview for a total drag distance measured from the gesture start."""
        start, end = shift_by_drag(
            self.original_start,
            self.original_end,
            delta_pixels,
            pixels_per_minute,
            grid_minutes,
        )
        return replace(self, preview_start=start, preview_end=end, delta_pixels=delta_pixels)

    @property
    def offset_minutes(self) -> int:
        return minutes_between(self.original_start, self.preview_start)

    @property
    def has_changed(self) -> bool:
        return self.preview_start != self.original_start

    def preview_item(self) -> ScheduledItem:
        return self.item.with_times(self.preview_start, self.preview_end)
