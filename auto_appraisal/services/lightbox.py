from typing import List

from auto_appraisal.models.views import LightboxFrame, PhotoView


def next_index(index: int, total: int) -> int:
    return (index + 1) % total


def prev_index(index: int, total: int) -> int:
    return (index - 1) % total


def frame(photos: List[PhotoView], index: int) -> LightboxFrame:
    """Lightbox state for photos[index]; raises IndexError outside the set"""
    total = len(photos)
    if not 0 <= index < total:
        raise IndexError(f"photo index {index} out of range for {total} photos")
    return LightboxFrame(
        index=index,
        total=total,
        position=f"{index + 1} / {total}",
        photo=photos[index],
        next_index=next_index(index, total),
        prev_index=prev_index(index, total),
    )
