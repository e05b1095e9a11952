"""Tests for keep/remove/merge/classify on cell lists."""

import pytest

from drawio_layers.errors import NoCellsError, NoIDError
from drawio_layers.layers import (
    WatermarkTemplate,
    find_and_delete,
    keep_elements_with_id,
    layer_id,
    load_watermark,
    merge_cells,
    remove_elements_with_id,
)
from drawio_layers.model import LayerInfo, parse_document

from .helpers import OVERLAY_XML, PLAIN_XML, cell_ids


SCENARIO_XML = (
    '<mxGraphModel><root>'
    '<mxCell id="0"/>'
    '<mxCell id="1" parent="0"/>'
    '<mxCell id="L1" parent="0" value="Layer A"/>'
    '<mxCell id="c1" parent="L1"/>'
    '</root></mxGraphModel>'
)


@pytest.fixture
def cells():
    return parse_document(PLAIN_XML).cells


@pytest.fixture
def watermark():
    return load_watermark()


class TestPreconditions:
    @pytest.mark.parametrize('func', [keep_elements_with_id, remove_elements_with_id])
    def test_none_cells(self, func):
        with pytest.raises(NoCellsError):
            func(None, 'L1')

    @pytest.mark.parametrize('func', [keep_elements_with_id, remove_elements_with_id])
    def test_empty_cells(self, func):
        with pytest.raises(NoCellsError):
            func([], 'L1')

    @pytest.mark.parametrize('func', [keep_elements_with_id, remove_elements_with_id])
    def test_empty_cells_and_id(self, func):
        with pytest.raises(NoCellsError):
            func([], '')

    @pytest.mark.parametrize('func', [keep_elements_with_id, remove_elements_with_id])
    def test_empty_id(self, func, cells):
        with pytest.raises(NoIDError):
            func(cells, '')


class TestKeepElementsWithId:
    def test_extract_layer_scenario(self):
        cells = parse_document(SCENARIO_XML).cells
        kept = keep_elements_with_id(cells, 'L1')
        assert cell_ids(kept) == ['0', 'L1', 'c1']
        assert kept[1] is cells[2]
        assert kept[2] is cells[3]

    def test_placeholder_first(self, cells):
        kept = keep_elements_with_id(cells, 'L1')
        assert dict(kept[0].element.attrib) == {'id': '0'}
        assert kept[0] is not cells[0]

    def test_only_direct_children(self):
        cells = parse_document(
            '<mxGraphModel><root>'
            '<mxCell id="0"/>'
            '<mxCell id="L1" parent="0" value="Layer"/>'
            '<mxCell id="g1" parent="L1"/>'
            '<mxCell id="g1-child" parent="g1"/>'
            '</root></mxGraphModel>'
        ).cells
        assert cell_ids(keep_elements_with_id(cells, 'L1')) == ['0', 'L1', 'g1']

    def test_input_not_modified(self, cells):
        before = list(cells)
        keep_elements_with_id(cells, 'L1')
        assert cells == before


class TestRemoveElementsWithId:
    def test_removes_layer_and_children(self, cells):
        kept = remove_elements_with_id(cells, 'L1')
        assert cell_ids(kept) == ['0', '0', '1', 'c2']

    def test_partition(self, cells):
        for target in ('0', '1', 'L1', 'c1', 'missing'):
            kept = keep_elements_with_id(cells, target)[1:]
            removed = remove_elements_with_id(cells, target)[1:]
            assert not any(c in removed for c in kept)
            assert sorted(kept + removed, key=cells.index) == cells


class TestMergeCells:
    def test_reserved_ids_dropped(self, cells):
        other = parse_document(OVERLAY_XML).cells
        merged = merge_cells(cells, other)
        assert cell_ids(merged) == ['0', '1', 'L1', 'c1', 'c2', 'O1', 'o1', 'o2']

    def test_order_kept(self, cells):
        other = parse_document(OVERLAY_XML).cells
        merged = merge_cells(cells, other)
        assert merged[:len(cells)] == cells
        assert merged[len(cells):] == other[2:]

    def test_colliding_ids_not_deduplicated(self, cells):
        other = parse_document(PLAIN_XML).cells
        merged = merge_cells(cells, other)
        assert cell_ids(merged).count('L1') == 2

    def test_find_and_delete(self, cells):
        assert cell_ids(find_and_delete(cells, 'c1')) == ['0', '1', 'L1', 'c2']


class TestLayerId:
    def test_found(self):
        layers = [LayerInfo('Background', '1', 1), LayerInfo('Layer A', 'L1', 2)]
        assert layer_id(layers, 'Layer A') == 'L1'

    def test_first_match_wins(self):
        layers = [LayerInfo('Dup', 'a', 0), LayerInfo('Dup', 'b', 1)]
        assert layer_id(layers, 'Dup') == 'a'

    def test_exact_match_only(self):
        layers = [LayerInfo('Layer A', 'L1', 2)]
        assert layer_id(layers, 'layer a') is None

    def test_not_found(self):
        assert layer_id([], 'Layer A') is None


class TestWatermark:
    def test_bundled_template(self, watermark):
        assert cell_ids(watermark.cells) == ['classification-draft', 'classification-draft-label']

    def test_appended_after_cells(self, cells, watermark):
        marked = watermark.apply(cells)
        assert marked[:len(cells)] == cells
        assert cell_ids(marked[len(cells):]) == cell_ids(watermark.cells)

    def test_applied_twice_is_duplicated(self, cells, watermark):
        # No de-duplication: classifying twice stamps the watermark twice
        marked = watermark.apply(watermark.apply(cells))
        assert len(marked) == len(cells) + 2 * len(watermark.cells)
        assert cell_ids(marked).count('classification-draft-label') == 2

    def test_template_not_modified(self, cells, watermark):
        marked = watermark.apply(cells)
        marked[-1].element.set('value', 'changed')
        assert watermark.cells[-1].element.get('value') == 'DRAFT'

    def test_custom_template(self, tmp_path, cells):
        path = tmp_path / 'secret.xml'
        path.write_text('<root><mxCell id="s" value="SECRET" parent="1"/></root>')
        template = load_watermark(path)
        assert isinstance(template, WatermarkTemplate)
        assert cell_ids(template.apply(cells))[-1] == 's'
