import pytest
from types import SimpleNamespace

from composer.errors import InvalidDimensions
from composer.layout import (
    LayoutEngine, FillOp, ImageOp, TextOp, compute_layout, round_half_up, MIN_QR_SIZE,
)
from models import CatalogItem

COVER = SimpleNamespace(width=640, height=640)
CODE = SimpleNamespace(width=640, height=160)       # 4:1, like a scannables render
TALL_CODE = SimpleNamespace(width=100, height=300)  # 1:3
QR = SimpleNamespace(width=300, height=300)


@pytest.fixture
def item():
    return CatalogItem(id="1", type="album", name="Discovery", subtitle="Daft Punk")


def margin_gap(width):
    return round_half_up(width * 0.08), round_half_up(width * 0.04)


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(2.4999) == 2


def test_operations_are_back_to_front(item):
    plan = compute_layout(item, COVER, CODE, QR, 1080, 1080)
    kinds = [op.kind for op in plan.operations]
    assert kinds == ["fill", "image", "image", "image", "text", "text"]
    assert [op.role for op in plan.operations if isinstance(op, ImageOp)] == ["cover", "code", "qr"]

    fill = plan.operations[0]
    assert isinstance(fill, FillOp)
    assert (fill.x, fill.y, fill.w, fill.h) == (0, 0, 1080, 1080)
    assert fill.color == "#ffffff"


def test_square_canvas_geometry(item):
    plan = compute_layout(item, COVER, CODE, QR, 1080, 1080)

    assert (plan.cover.x, plan.cover.y, plan.cover.w, plan.cover.h) == (243, 86, 594, 594)
    # 4:1 code needs shrinking to leave room for the QR
    assert (plan.code.x, plan.code.y, plan.code.w, plan.code.h) == (243, 723, 485, 121)
    assert (plan.qr.x, plan.qr.y, plan.qr.w, plan.qr.h) == (243, 887, 107, 107)

    name, subtitle = plan.texts
    assert name.content == "Discovery"
    assert (name.x, name.y) == (393, 930)
    assert name.font.size == 30 and name.font.bold
    assert subtitle.content == "Daft Punk"
    assert (subtitle.x, subtitle.y) == (393, 963)
    assert subtitle.font.size == 19 and not subtitle.font.bold
    assert name.max_width == subtitle.max_width == 1080 - 86 - 393


def test_no_subtitle_means_single_text_op():
    bare = CatalogItem(id="1", type="artist", name="Daft Punk")
    plan = compute_layout(bare, COVER, CODE, QR, 1080, 1920)
    assert len(plan.texts) == 1
    assert plan.texts[0].content == "Daft Punk"


def test_cover_is_centered_square(item):
    for width, height in [(1080, 1920), (1920, 1080), (400, 2000), (2480, 3508)]:
        plan = compute_layout(item, COVER, CODE, QR, width, height)
        cover = plan.cover
        assert cover.w == cover.h
        assert abs((cover.x + cover.w / 2) - width / 2) <= 1
        assert cover.y == margin_gap(width)[0]


def test_blocks_share_cover_left_edge(item):
    plan = compute_layout(item, COVER, CODE, QR, 1080, 1350)
    _, gap = margin_gap(1080)
    assert plan.code.x == plan.cover.x == plan.qr.x
    assert plan.code.y == plan.cover.y + plan.cover.h + gap
    assert plan.qr.y == plan.code.y + plan.code.h + gap
    for text in plan.texts:
        assert text.x == plan.qr.x + plan.qr.w + gap


def test_wide_code_keeps_aspect_without_shrink(item):
    # Tall canvas: nothing overflows, code spans the cover width
    plan = compute_layout(item, COVER, CODE, QR, 1080, 1920)
    assert plan.code.w == plan.cover.w == 908
    assert plan.code.h == 227


def test_tall_code_height_clamped_to_cover(item):
    # 1:3 code would be three covers tall at full width
    plan = compute_layout(item, COVER, TALL_CODE, QR, 1200, 3000)
    assert plan.cover.w == 1008
    assert plan.code.h == 1008
    assert plan.code.w == 336


def test_tall_code_on_square_canvas(item):
    plan = compute_layout(item, COVER, TALL_CODE, QR, 1200, 1200)
    assert plan.cover.w == 660
    assert plan.code.h <= plan.cover.h
    assert plan.code.w <= plan.cover.w
    # Width was recomputed from the clamped height, then both were scaled together
    assert abs(plan.code.h - 3 * plan.code.w) <= 3


@pytest.mark.parametrize("width,height", [(1080, 1080), (400, 2000), (1080, 1350), (800, 900)])
def test_code_and_qr_fit_above_bottom_margin(item, width, height):
    plan = compute_layout(item, COVER, CODE, QR, width, height)
    margin, gap = margin_gap(width)
    available = height - plan.code.y - margin
    assert plan.code.h + gap + plan.qr.h <= available + 1


def test_shrink_factor_is_floored(item):
    # Landscape: the remaining room would need a scale far below 30%
    plan = compute_layout(item, COVER, CODE, QR, 1920, 1080)
    assert plan.cover.w == 594
    assert plan.code.w == round_half_up(594 * 0.3)
    assert plan.code.h == round_half_up(148.5 * 0.3)
    # 131 * 0.3 rounds to 39, below the scannable floor
    assert plan.qr.w == MIN_QR_SIZE


def test_qr_floor_shifts_text_right(item):
    # Cover side 136 -> QR 30px before the floor
    plan = compute_layout(item, COVER, CODE, QR, 200, 248)
    margin, gap = margin_gap(200)
    assert plan.cover.w == 136
    assert round_half_up(plan.cover.w * 0.22) == 30
    assert plan.qr.w == plan.qr.h == MIN_QR_SIZE
    assert plan.texts[0].x == plan.cover.x + MIN_QR_SIZE + gap
    assert plan.texts[0].x > plan.cover.x + 30 + gap


def test_narrow_canvas_qr_limited_by_text_column(item):
    engine = LayoutEngine(qr_ratio=1.0)
    plan = engine.compute_layout(item, COVER, CODE, QR, 300, 3000)
    margin, gap = margin_gap(300)
    available_width = 300 - 2 * margin
    text_column = round_half_up(min(available_width * 0.25, 120))
    assert plan.qr.w == max(MIN_QR_SIZE, available_width - text_column - gap)


@pytest.mark.parametrize("width", [1, 2, 50, 200, 400, 1080, 1920, 3840])
@pytest.mark.parametrize("height", [1, 3, 100, 248, 1080, 2000, 3508])
def test_layout_invariants(item, width, height):
    plan = compute_layout(item, COVER, CODE, QR, width, height)

    for op in plan.operations:
        if isinstance(op, ImageOp):
            assert op.w > 0 and op.h > 0

    cover, code, qr = plan.cover, plan.code, plan.qr
    assert cover.w == cover.h
    assert code.w <= cover.w
    assert code.h <= cover.h
    assert qr.w == qr.h
    assert qr.w >= MIN_QR_SIZE
    upper = min(cover.h, round_half_up(0.22 * cover.w))
    if upper >= MIN_QR_SIZE:
        assert qr.w <= upper


def test_layout_is_deterministic(item):
    first = compute_layout(item, COVER, TALL_CODE, QR, 1333, 777)
    second = compute_layout(item, COVER, TALL_CODE, QR, 1333, 777)
    assert first == second


def test_text_ops_keep_content_unmeasured(item):
    long_item = CatalogItem(id="1", type="track", name="x" * 500, subtitle="y" * 500)
    plan = compute_layout(long_item, COVER, CODE, QR, 1080, 1080)
    assert all(isinstance(op, TextOp) for op in plan.texts)
    assert plan.texts[0].content == "x" * 500


@pytest.mark.parametrize("width,height", [(0, 1080), (1080, 0), (-5, 100), (100, -1)])
def test_invalid_dimensions_rejected(item, width, height):
    with pytest.raises(InvalidDimensions):
        compute_layout(item, COVER, CODE, QR, width, height)


@pytest.mark.parametrize("width,height", [("1080", 1080), (1080.0, 1080), (None, 1080), (True, 1080)])
def test_non_integer_dimensions_rejected(item, width, height):
    with pytest.raises(InvalidDimensions):
        compute_layout(item, COVER, CODE, QR, width, height)
