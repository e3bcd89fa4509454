import pytest

from auto_appraisal.models.views import PhotoView
from auto_appraisal.services.lightbox import frame, next_index, prev_index


def photos(n):
    return [
        PhotoView(id=f"p{i}", index=i, storage_path=f"claim/c/{i}.jpg", url=f"https://cdn/{i}.jpg",
                  download_name=f"claim-1-photo-p{i}.jpg")
        for i in range(n)
    ]


@pytest.mark.parametrize("index,total,expected", [(0, 3, 1), (2, 3, 0), (0, 1, 0)])
def test_next_wraps(index, total, expected):
    assert next_index(index, total) == expected


@pytest.mark.parametrize("index,total,expected", [(0, 3, 2), (2, 3, 1), (0, 1, 0)])
def test_prev_wraps(index, total, expected):
    assert prev_index(index, total) == expected


def test_full_cycle_returns_to_start():
    i = 0
    for _ in range(5):
        i = next_index(i, 5)
    assert i == 0


def test_frame():
    f = frame(photos(4), 1)
    assert f.position == "2 / 4"
    assert f.photo.id == "p1"
    assert (f.prev_index, f.next_index) == (0, 2)


@pytest.mark.parametrize("index", [-1, 3])
def test_frame_out_of_range(index):
    with pytest.raises(IndexError):
        frame(photos(3), index)


def test_frame_with_no_photos():
    with pytest.raises(IndexError):
        frame([], 0)
