"""
Unit tests for the TagGenerationEngine: batches, previews, validation,
parent inheritance and manual edits.
"""

import sys
from pathlib import Path
from typing import List

import pytest

project_root = Path(__file__).resolve().parents[5]
sys.path.insert(0, str(project_root))

from modules.tag_engineering.tag_templating.functions.fn_tag_generation.common.logger import (  # noqa: E402
    TagEngineLogger,
)
from modules.tag_engineering.tag_templating.functions.fn_tag_generation.engine.counter_engine import (  # noqa: E402
    CounterKey,
)
from modules.tag_engineering.tag_templating.functions.fn_tag_generation.engine.errors import (  # noqa: E402
    TagEngineError,
    TagValidationError,
    TemplateStructureError,
)
from modules.tag_engineering.tag_templating.functions.fn_tag_generation.engine.settings import (  # noqa: E402
    GenerationSettings,
    TagEngineConfig,
)
from modules.tag_engineering.tag_templating.functions.fn_tag_generation.engine.tag_generation_engine import (  # noqa: E402
    GenerationResult,
    TagGenerationEngine,
)
from modules.tag_engineering.tag_templating.functions.fn_tag_generation.engine.template_model import (  # noqa: E402
    AutoNumberBlock,
    BlockKind,
    LegacyParentRefBlock,
    LiteralBlock,
    ParentSource,
    ReservedRange,
    Tag,
    TagStatus,
    Template,
    assemble_full_tag,
)
from modules.tag_engineering.tag_templating.tests.fixtures.sample_data import (  # noqa: E402
    PROJECT_ID,
    PUMP_VALUES,
    make_child_template,
    make_plant_template,
    make_pump_template,
    make_snapshot,
    make_tag,
    sample_assembly,
)

QUIET = TagEngineLogger("WARNING", False)


class ListSink:
    """Sink that keeps written tags to itself."""

    def __init__(self):
        self.written: List[Tag] = []

    def write(self, tags: List[Tag]) -> None:
        self.written.extend(tags)


class TestEngineSetup:
    def test_every_block_kind_has_a_handler(self, engine) -> None:
        assert set(engine.block_handlers) == set(BlockKind)


class TestSequenceGeneration:
    """Sequence mode: consecutive numbers."""

    def test_two_tags_in_sequence(self, engine, pump_template) -> None:
        # Act
        result = engine.generate(pump_template, PUMP_VALUES, quantity=2)

        # Assert
        assert isinstance(result, GenerationResult)
        assert result.full_tags == ["P-21001", "P-21002"]
        assert result.stopped_on_collision is False
        assert result.requested == 2
        assert result.start_number == 1

    def test_created_tags_are_committed_to_snapshot(self, engine, snapshot, pump_template) -> None:
        engine.generate(pump_template, PUMP_VALUES, quantity=2)

        assert [t.full_tag for t in snapshot.tags] == ["P-21001", "P-21002"]

    def test_next_batch_continues_numbering(self, engine, pump_template) -> None:
        engine.generate(pump_template, PUMP_VALUES, quantity=2)

        result = engine.generate(pump_template, PUMP_VALUES, quantity=1)

        assert result.full_tags == ["P-21003"]

    def test_reserved_range_is_skipped(self, pump_template) -> None:
        # Arrange
        snapshot = make_snapshot(
            tags=[make_tag("P-21001")],
            reserved_ranges=[ReservedRange(project_id=PROJECT_ID, scope="P-210", start=2, end=4)],
            templates=[pump_template],
        )
        engine = TagGenerationEngine(snapshot, logger=QUIET)

        # Act
        result = engine.generate(pump_template, PUMP_VALUES)

        # Assert
        assert result.full_tags == ["P-21005"]

    def test_parts_round_trip_to_full_tag(self, engine, pump_template) -> None:
        result = engine.generate(pump_template, PUMP_VALUES, quantity=3)

        for tag in result.created:
            assert assemble_full_tag(pump_template, tag.parts) == tag.full_tag
            assert tag.parts["type"] == "P"
            assert tag.parts["project"] == "210"

    def test_new_tags_are_drafts_with_created_history(self, engine, pump_template) -> None:
        result = engine.generate(
            pump_template, PUMP_VALUES, quantity=1, actor="a.petrova", hierarchy_parent_id="tag-unit"
        )

        tag = result.created[0]
        assert tag.status == TagStatus.DRAFT
        assert tag.template_id == pump_template.id
        assert tag.project_id == PROJECT_ID
        assert tag.parent_id == "tag-unit"
        assert len(tag.history) == 1
        assert tag.history[0].action == "Created"
        assert tag.history[0].user == "a.petrova"

    def test_default_actor_from_settings(self, snapshot, pump_template) -> None:
        config = TagEngineConfig(generation=GenerationSettings(default_actor="tagbot"))
        engine = TagGenerationEngine(snapshot, config=config, logger=QUIET)

        result = engine.generate(pump_template, PUMP_VALUES)

        assert result.created[0].history[0].user == "tagbot"

    def test_generation_is_deterministic(self, pump_template) -> None:
        first = TagGenerationEngine(make_snapshot(tags=[make_tag("P-21004")]), logger=QUIET)
        second = TagGenerationEngine(make_snapshot(tags=[make_tag("P-21004")]), logger=QUIET)

        a = first.generate(pump_template, PUMP_VALUES, quantity=3)
        b = second.generate(pump_template, PUMP_VALUES, quantity=3)

        assert a.full_tags == b.full_tags == ["P-21005", "P-21006", "P-21007"]

    def test_unknown_code_resolves_to_empty_string(self, engine, pump_template) -> None:
        result = engine.generate(pump_template, {"type": "P", "project": "999"})

        assert result.full_tags == ["P-01"]
        assert result.created[0].parts["project"] == ""

    def test_global_variable_and_literal_blocks(self) -> None:
        template = make_plant_template()
        engine = TagGenerationEngine(make_snapshot(templates=[template]), logger=QUIET)

        result = engine.generate(template, {}, quantity=2)

        assert result.full_tags == ["KZ-LT001", "KZ-LT002"]

    def test_sequence_mode_keeps_user_suffix(self, engine, suffix_template) -> None:
        values = dict(PUMP_VALUES, sfx="B")

        result = engine.generate(suffix_template, values, quantity=2)

        assert result.full_tags == ["P-21001B", "P-21002B"]


class TestParallelGeneration:
    """Parallel mode: one number, suffixes A, B, C."""

    def test_three_parallel_tags(self, engine, suffix_template) -> None:
        result = engine.generate(suffix_template, PUMP_VALUES, quantity=3, mode="parallel")

        assert result.full_tags == ["P-21001A", "P-21001B", "P-21001C"]
        assert {t.parts["num"] for t in result.created} == {"01"}

    def test_parallel_batch_consumes_one_number(self, engine, suffix_template) -> None:
        engine.generate(suffix_template, PUMP_VALUES, quantity=3, mode="parallel")

        result = engine.generate(suffix_template, PUMP_VALUES, quantity=2, mode="parallel")

        assert result.full_tags == ["P-21002A", "P-21002B"]

    def test_parallel_without_suffix_block_is_rejected(self, engine, pump_template) -> None:
        with pytest.raises(TagValidationError) as exc_info:
            engine.generate(pump_template, PUMP_VALUES, quantity=2, mode="parallel")

        assert any("suffix" in e for e in exc_info.value.errors)

    def test_parallel_limited_to_alphabet(self, engine, suffix_template) -> None:
        with pytest.raises(TagValidationError):
            engine.generate(suffix_template, PUMP_VALUES, quantity=27, mode="parallel")


class TestCollisions:
    """A collision halts the batch but keeps what was produced before it."""

    def test_collision_on_third_item_commits_two(self, pump_template) -> None:
        # Arrange: counter primed at 1 while P-21004 already exists
        snapshot = make_snapshot(tags=[make_tag("P-21004")], templates=[pump_template])
        engine = TagGenerationEngine(snapshot, logger=QUIET)
        engine.counter_engine.record_issued(PROJECT_ID, "P-210", 1)

        # Act
        result = engine.generate(pump_template, PUMP_VALUES, quantity=5)

        # Assert
        assert result.full_tags == ["P-21002", "P-21003"]
        assert len(result.created) == 2
        assert result.stopped_on_collision is True
        assert result.collided_tag == "P-21004"
        assert result.requested == 5
        assert [t.full_tag for t in snapshot.tags] == ["P-21004", "P-21002", "P-21003"]
        assert engine.counter_engine.counters[CounterKey(PROJECT_ID, "P-210")] == 3

    def test_collision_on_first_item_commits_nothing(self, pump_template) -> None:
        snapshot = make_snapshot(tags=[make_tag("P-21002")], templates=[pump_template])
        engine = TagGenerationEngine(snapshot, logger=QUIET)
        engine.counter_engine.record_issued(PROJECT_ID, "P-210", 1)

        result = engine.generate(pump_template, PUMP_VALUES, quantity=3)

        assert result.created == []
        assert result.stopped_on_collision is True
        assert len(snapshot.tags) == 1

    def test_template_without_number_collides_within_batch(self) -> None:
        template = Template(project_id=PROJECT_ID, blocks=[LiteralBlock(id="l", text="SKID-1")])
        engine = TagGenerationEngine(make_snapshot(templates=[template]), logger=QUIET)

        result = engine.generate(template, {}, quantity=3)

        assert result.full_tags == ["SKID-1"]
        assert result.collided_tag == "SKID-1"

    def test_session_tags_collide_with_external_sink(self) -> None:
        template = Template(project_id=PROJECT_ID, blocks=[LiteralBlock(id="l", text="SKID-1")])
        snapshot = make_snapshot(templates=[template])
        sink = ListSink()
        engine = TagGenerationEngine(snapshot, sink=sink, logger=QUIET)

        engine.generate(template, {})
        second = engine.generate(template, {})

        assert [t.full_tag for t in sink.written] == ["SKID-1"]
        assert snapshot.tags == []
        assert second.stopped_on_collision is True


class TestValidation:
    @pytest.mark.parametrize("quantity", [0, -1, 51])
    def test_quantity_out_of_bounds(self, engine, pump_template, quantity) -> None:
        with pytest.raises(TagValidationError):
            engine.generate(pump_template, PUMP_VALUES, quantity=quantity)

    def test_max_batch_size_is_configurable(self, snapshot, pump_template) -> None:
        config = TagEngineConfig(generation=GenerationSettings(max_batch_size=3))
        engine = TagGenerationEngine(snapshot, config=config, logger=QUIET)

        with pytest.raises(TagValidationError):
            engine.generate(pump_template, PUMP_VALUES, quantity=4)

    def test_unknown_mode(self, engine, pump_template) -> None:
        with pytest.raises(TagValidationError):
            engine.generate(pump_template, PUMP_VALUES, mode="random")

    def test_validation_error_leaves_counter_untouched(self, engine, pump_template) -> None:
        with pytest.raises(TagValidationError):
            engine.generate(pump_template, PUMP_VALUES, quantity=0)

        assert engine.counter_engine.counters == {}

    def test_require_complete_values(self, snapshot, pump_template) -> None:
        config = TagEngineConfig(generation=GenerationSettings(require_complete_values=True))
        engine = TagGenerationEngine(snapshot, config=config, logger=QUIET)

        with pytest.raises(TagValidationError) as exc_info:
            engine.generate(pump_template, {"type": "P"})

        assert len(exc_info.value.errors) == 1
        assert "Проект" in exc_info.value.errors[0]

    def test_duplicate_number_blocks_is_structure_error(self, engine) -> None:
        template = Template(
            project_id=PROJECT_ID,
            blocks=[AutoNumberBlock(id="n1"), AutoNumberBlock(id="n2")],
        )

        with pytest.raises(TemplateStructureError):
            engine.generate(template, {})
        with pytest.raises(TemplateStructureError):
            engine.compute_preview(template, {})

    def test_structure_and_validation_errors_are_distinct(self) -> None:
        assert not issubclass(TemplateStructureError, TagValidationError)
        assert issubclass(TemplateStructureError, TagEngineError)
        assert issubclass(TagValidationError, TagEngineError)


class TestPreview:
    def test_incomplete_prefix_shows_placeholders(self, engine, pump_template) -> None:
        assert engine.compute_preview(pump_template, {"type": "P"}) == "P-?##"

    def test_empty_input(self, engine, pump_template) -> None:
        assert engine.compute_preview(pump_template, {}) == "?-?##"

    def test_complete_input_shows_next_number(self, engine, pump_template) -> None:
        assert engine.compute_preview(pump_template, PUMP_VALUES) == "P-21001"

    def test_preview_reflects_existing_tags(self, pump_template) -> None:
        engine = TagGenerationEngine(make_snapshot(tags=[make_tag("P-21004")]), logger=QUIET)

        assert engine.compute_preview(pump_template, PUMP_VALUES) == "P-21005"

    def test_preview_does_not_consume_numbers(self, engine, pump_template) -> None:
        engine.compute_preview(pump_template, PUMP_VALUES)
        engine.compute_preview(pump_template, PUMP_VALUES)

        assert engine.generate(pump_template, PUMP_VALUES).full_tags == ["P-21001"]

    def test_missing_global_variable_shows_key(self) -> None:
        template = make_plant_template()
        snapshot = make_snapshot(templates=[template])
        snapshot.global_variables = []
        engine = TagGenerationEngine(snapshot, logger=QUIET)

        assert engine.compute_preview(template, {}) == "{PLANT}-LT###"

    def test_parent_reference_without_parent(self, engine) -> None:
        template = make_child_template(ParentSource.FULL_TAG)

        assert engine.compute_preview(template, {}) == "M-?"


class TestParentInheritance:
    def _engine_with_parent(self):
        pump = make_pump_template()
        parent = make_tag(
            "P-21007",
            parts={"type": "P", "sep": "-", "project": "210", "num": "07"},
            tag_id="tag-p7",
        )
        snapshot = make_snapshot(tags=[parent], templates=[pump])
        return TagGenerationEngine(snapshot, logger=QUIET), parent

    def test_full_tag_source(self) -> None:
        engine, parent = self._engine_with_parent()
        template = make_child_template(ParentSource.FULL_TAG)

        result = engine.generate(template, {}, parent=parent)

        assert result.full_tags == ["M-P-21007"]

    def test_number_source(self) -> None:
        engine, parent = self._engine_with_parent()
        template = make_child_template(ParentSource.NUMBER)

        result = engine.generate(template, {}, parent="tag-p7")

        assert result.full_tags == ["M-07"]

    def test_wbs_source(self) -> None:
        engine, parent = self._engine_with_parent()
        template = make_child_template(ParentSource.WBS)

        assert engine.compute_preview(template, {}, parent=parent) == "M-210"

    def test_parent_required(self) -> None:
        engine, _ = self._engine_with_parent()
        template = make_child_template(ParentSource.FULL_TAG)

        with pytest.raises(TagValidationError) as exc_info:
            engine.generate(template, {})

        assert "requires a parent" in exc_info.value.errors[0]

    def test_parent_without_inheritable_value(self) -> None:
        engine, _ = self._engine_with_parent()
        orphan = make_tag("X-1", template_id="missing-template")
        template = make_child_template(ParentSource.NUMBER)

        with pytest.raises(TagValidationError):
            engine.generate(template, {}, parent=orphan)

    def test_unknown_parent_id(self) -> None:
        engine, _ = self._engine_with_parent()
        template = make_child_template(ParentSource.FULL_TAG)

        with pytest.raises(TagValidationError):
            engine.generate(template, {}, parent="no-such-tag")

    def test_legacy_parent_reference_is_manual_text(self) -> None:
        template = Template(
            project_id=PROJECT_ID,
            blocks=[LiteralBlock(id="l", text="JB-"), LegacyParentRefBlock(id="legacy")],
        )
        engine = TagGenerationEngine(make_snapshot(templates=[template]), logger=QUIET)

        assert engine.compute_preview(template, {}) == "JB-?"
        assert engine.generate(template, {"legacy": "P-101"}).full_tags == ["JB-P-101"]


class TestDryRun:
    def test_dry_run_writes_nothing(self, engine, snapshot, pump_template) -> None:
        result = engine.generate(pump_template, PUMP_VALUES, quantity=2, dry_run=True)

        assert result.full_tags == ["P-21001", "P-21002"]
        assert snapshot.tags == []
        assert engine.counter_engine.counters == {}


class TestUpdateTag:
    def _generated(self, engine, template):
        return engine.generate(template, PUMP_VALUES, quantity=2).created

    def test_edit_reassembles_full_tag(self, engine, snapshot, pump_template) -> None:
        first, _ = self._generated(engine, pump_template)

        updated = engine.update_tag(first, pump_template, {"project": "220"}, actor="i.ivanov")

        assert updated.full_tag == "P-22001"
        assert updated.parts["project"] == "220"
        assert updated.history[-1].action == "Edited"
        assert updated.history[-1].user == "i.ivanov"
        assert "'210' -> '220'" in updated.history[-1].details
        assert snapshot.tag_by_id(first.id).full_tag == "P-22001"

    def test_edit_into_existing_tag_is_refused(self, engine, pump_template) -> None:
        first, _ = self._generated(engine, pump_template)

        with pytest.raises(TagValidationError):
            engine.update_tag(first, pump_template, {"num": "02"})

    def test_status_and_notes(self, engine, pump_template) -> None:
        first, _ = self._generated(engine, pump_template)

        updated = engine.update_tag(first, pump_template, status="approved", notes="Checked on P&ID")

        assert updated.status == TagStatus.APPROVED
        assert updated.notes == "Checked on P&ID"
        assert "status: 'draft' -> 'approved'" in updated.history[-1].details
        assert updated.full_tag == first.full_tag

    def test_no_change_returns_tag_unchanged(self, engine, pump_template) -> None:
        first, _ = self._generated(engine, pump_template)

        assert engine.update_tag(first, pump_template, {"project": "210"}) is first

    def test_unknown_block_is_rejected(self, engine, pump_template) -> None:
        first, _ = self._generated(engine, pump_template)

        with pytest.raises(TagValidationError):
            engine.update_tag(first, pump_template, {"nope": "1"})


class TestImportAssembly:
    def test_assembly_tags_are_written_with_hierarchy(self, engine, snapshot) -> None:
        tags = engine.import_assembly(sample_assembly(), "AHU-101", PROJECT_ID, actor="a.petrova")

        by_tag = {t.full_tag: t for t in tags}
        assert list(by_tag) == ["AHU-101", "M-101", "EH-101", "DA-101", "TT-101"]
        assert by_tag["M-101"].parent_id == by_tag["AHU-101"].id
        assert by_tag["EH-101"].parent_id == by_tag["M-101"].id
        assert by_tag["AHU-101"].history[0].action == "Imported from Assembly"
        assert len(snapshot.tags) == 5


class TestDefaultPadding:
    def _template(self, padding=None) -> Template:
        return Template(
            id="tpl-x",
            project_id=PROJECT_ID,
            name="X",
            blocks=[LiteralBlock(id="x", text="X-"), AutoNumberBlock(id="n", padding=padding)],
        )

    def _engine(self, template: Template) -> TagGenerationEngine:
        config = TagEngineConfig(generation=GenerationSettings(default_padding=5))
        return TagGenerationEngine(make_snapshot(templates=[template]), config=config, logger=QUIET)

    def test_configured_width_applies_to_unset_padding(self) -> None:
        template = self._template()
        engine = self._engine(template)

        assert engine.compute_preview(template, {}) == "X-00001"
        assert engine.generate(template, {}).full_tags == ["X-00001"]

    def test_explicit_padding_wins(self) -> None:
        template = self._template(padding=2)

        assert self._engine(template).generate(template, {}).full_tags == ["X-01"]

    def test_placeholder_uses_configured_width(self) -> None:
        template = Template(
            project_id=PROJECT_ID,
            blocks=[LiteralBlock(id="x", text="X-"), LegacyParentRefBlock(id="l"), AutoNumberBlock(id="n")],
        )
        engine = self._engine(template)

        assert engine.compute_preview(template, {}) == "X-?#####"

    def test_unset_padding_defaults_to_three(self) -> None:
        template = self._template()
        engine = TagGenerationEngine(make_snapshot(templates=[template]), logger=QUIET)

        assert engine.generate(template, {}).full_tags == ["X-001"]


class TestUpdateTagWithExternalSink:
    def test_edit_cannot_take_a_number_issued_this_session(self, pump_template) -> None:
        # Arrange
        existing = make_tag("P-22001", parts={"type": "P", "sep": "-", "project": "220", "num": "01"})
        sink = ListSink()
        engine = TagGenerationEngine(
            make_snapshot(tags=[existing], templates=[pump_template]), sink=sink, logger=QUIET
        )
        assert engine.generate(pump_template, PUMP_VALUES).full_tags == ["P-21001"]

        # Act / Assert
        with pytest.raises(TagValidationError, match="P-21001"):
            engine.update_tag(existing, pump_template, {"project": "210"})

    def test_edit_is_written_through_the_sink(self, pump_template) -> None:
        existing = make_tag("P-22001", parts={"type": "P", "sep": "-", "project": "220", "num": "01"})
        sink = ListSink()
        engine = TagGenerationEngine(
            make_snapshot(tags=[existing], templates=[pump_template]), sink=sink, logger=QUIET
        )

        updated = engine.update_tag(existing, pump_template, {"project": "210"})

        assert [t.full_tag for t in sink.written] == ["P-21001"]
        assert sink.written[0].id == existing.id
        assert updated.full_tag == "P-21001"

    def test_renamed_session_tag_frees_its_old_name(self, pump_template) -> None:
        sink = ListSink()
        engine = TagGenerationEngine(make_snapshot(templates=[pump_template]), sink=sink, logger=QUIET)
        issued = engine.generate(pump_template, PUMP_VALUES).created[0]

        engine.update_tag(issued, pump_template, {"project": "220"})
        other = make_tag("P-22002", parts={"type": "P", "sep": "-", "project": "220", "num": "02"})

        assert engine.update_tag(other, pump_template, {"project": "210", "num": "01"}).full_tag == "P-21001"

    def test_snapshot_sink_replaces_the_edited_tag(self, engine, snapshot, pump_template) -> None:
        first, _ = engine.generate(pump_template, PUMP_VALUES, quantity=2).created

        engine.update_tag(first, pump_template, {"project": "220"})

        assert [t.full_tag for t in snapshot.tags] == ["P-22001", "P-21002"]


class TestLoggerDefaults:
    def test_engines_do_not_share_a_default_logger(self) -> None:
        first = TagGenerationEngine(make_snapshot())
        second = TagGenerationEngine(make_snapshot())

        assert first.logger is not second.logger
        assert first.counter_engine.logger is first.logger
