"""
Tag Generation Engine

Assembles tag strings from templates and issues them in batches.

Features:
- Per-block-kind handlers (literal, dictionary, global variable, parent reference,
  manual value, auto-number, suffix); the engine refuses to start if a block kind
  has no handler
- Live previews with placeholders for unresolved blocks
- Sequence batches (consecutive numbers) and parallel batches (one number,
  suffixes A, B, C...)
- Collision detection that halts a batch but keeps the tags produced before it
- Reserved-range aware numbering through the CounterEngine
- Manual edits that re-assemble the tag and record an audit entry
- Bulk tag creation from assembly patterns
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from ..common.logger import TagEngineLogger
from .assembly_expander import assembly_to_tags, expand_assembly
from .counter_engine import CounterEngine, compute_prefix
from .dataset import DatasetSnapshot, SnapshotTagSink, TagSink
from .errors import TagValidationError
from .handlers import (
    AutoNumberBlockHandler,
    BlockContext,
    BlockValueHandler,
    DictionaryBlockHandler,
    GlobalVariableBlockHandler,
    LiteralBlockHandler,
    ManualValueBlockHandler,
    ParentReferenceBlockHandler,
    SuffixBlockHandler,
)
from .parent_inheritance import parent_ref_errors
from .settings import TagEngineConfig
from .template_model import (
    AbstractAssembly,
    AbstractComponent,
    AuditLog,
    BlockKind,
    GenerationMode,
    Tag,
    TagStatus,
    Template,
    assemble_full_tag,
    describe_block,
)

MAX_PARALLEL_SUFFIXES = 26


@dataclass
class GenerationResult:
    """Outcome of one generate() call."""

    created: List[Tag] = field(default_factory=list)
    stopped_on_collision: bool = False
    requested: int = 0
    collided_tag: Optional[str] = None
    start_number: Optional[int] = None

    @property
    def full_tags(self) -> List[str]:
        return [t.full_tag for t in self.created]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "created": [t.model_dump(mode="json") for t in self.created],
            "stopped_on_collision": self.stopped_on_collision,
            "requested": self.requested,
            "collided_tag": self.collided_tag,
            "start_number": self.start_number,
        }


class TagGenerationEngine:
    """Engine that turns templates plus user input into tags."""

    def __init__(
        self,
        snapshot: DatasetSnapshot,
        sink: Optional[TagSink] = None,
        config: Optional[TagEngineConfig] = None,
        logger: Optional[TagEngineLogger] = None,
    ):
        self.snapshot = snapshot
        self.sink = sink if sink is not None else SnapshotTagSink(snapshot)
        self.config = config or TagEngineConfig()
        self.logger = logger or TagEngineLogger("INFO", False)
        self.counter_engine = CounterEngine(snapshot, self.logger)
        self.block_handlers = self._initialize_block_handlers()
        # (project_id, full_tag) committed by this engine, checked alongside the snapshot
        self._session_tags: Set[Tuple[str, str]] = set()

        self.logger.info(
            f"Initialized TagGenerationEngine with {len(snapshot.templates)} templates "
            f"and {len(snapshot.tags)} existing tags"
        )

    def _initialize_block_handlers(self) -> Dict[BlockKind, BlockValueHandler]:
        """Initialize the block value handlers, one per block kind."""
        literal = LiteralBlockHandler(self.logger)
        handlers = {
            BlockKind.LITERAL: literal,
            BlockKind.SEPARATOR: literal,
            BlockKind.DICTIONARY: DictionaryBlockHandler(self.logger),
            BlockKind.GLOBAL_VAR: GlobalVariableBlockHandler(self.logger),
            BlockKind.PARENT_REF: ParentReferenceBlockHandler(self.logger),
            BlockKind.LEGACY_PARENT_REF: ManualValueBlockHandler(self.logger),
            BlockKind.AUTO_NUMBER: AutoNumberBlockHandler(self.logger),
            BlockKind.SUFFIX: SuffixBlockHandler(self.logger),
        }
        missing = [kind.value for kind in BlockKind if kind not in handlers]
        if missing:
            raise NotImplementedError(
                f"No block handler registered for: {', '.join(missing)}"
            )
        return handlers

    # Resolution

    def _parent_and_template(
        self, parent: Optional[Union[Tag, str]]
    ) -> Tuple[Optional[Tag], Optional[Template]]:
        if parent is None:
            return None, None
        if isinstance(parent, str):
            parent_tag = self.snapshot.tag_by_id(parent)
            if parent_tag is None:
                raise TagValidationError([f"Parent tag '{parent}' not found"])
            parent = parent_tag
        return parent, self.snapshot.template_by_id(parent.template_id)

    def _context(
        self,
        template: Template,
        values: Optional[Dict[str, Any]],
        parent: Optional[Tag],
        parent_template: Optional[Template],
        number: Optional[int] = None,
        suffix: Optional[str] = None,
    ) -> BlockContext:
        return BlockContext(
            snapshot=self.snapshot,
            project_id=template.project_id,
            values=dict(values or {}),
            parent=parent,
            parent_template=parent_template,
            wbs_categories=list(self.config.inheritance.wbs_categories),
            number=number,
            suffix=suffix,
            placeholder=self.config.preview.placeholder,
            number_placeholder=self.config.preview.number_placeholder,
            default_padding=self.config.generation.default_padding,
        )

    def _resolve_with(self, template: Template, context: BlockContext) -> Dict[str, Optional[str]]:
        return {
            block.id: self.block_handlers[block.kind].resolve(block, context)
            for block in template.blocks
        }

    def resolve_values(
        self,
        template: Template,
        values: Optional[Dict[str, Any]] = None,
        parent: Optional[Union[Tag, str]] = None,
        number: Optional[int] = None,
        suffix: Optional[str] = None,
    ) -> Dict[str, Optional[str]]:
        """
        Resolve every block of a template.

        Args:
            template: Template to resolve
            values: User input keyed by block id (dictionary codes, manual text, suffix)
            parent: Inheritance-source tag or its id
            number: Auto-number value, if already issued
            suffix: Suffix letter for parallel batches

        Returns:
            Block id -> resolved value, None where the block is unresolved
        """
        template.validate_structure()
        parent_tag, parent_template = self._parent_and_template(parent)
        context = self._context(template, values, parent_tag, parent_template, number, suffix)
        return self._resolve_with(template, context)

    def compute_preview(
        self,
        template: Template,
        partial_values: Optional[Dict[str, Any]] = None,
        parent: Optional[Union[Tag, str]] = None,
    ) -> str:
        """
        Render the tag the current input would produce, without issuing a number.

        Unresolved blocks show placeholders; the number shows as '#' x padding
        until every block of the prefix is resolved.
        """
        template.validate_structure()
        parent_tag, parent_template = self._parent_and_template(parent)
        context = self._context(template, partial_values, parent_tag, parent_template)
        resolved = self._resolve_with(template, context)

        number_block = template.auto_number_block
        if number_block is not None:
            prefix_blocks = template.prefix_blocks()
            if all(resolved[b.id] is not None for b in prefix_blocks):
                prefix = compute_prefix(template, resolved)
                context.number = self.counter_engine.peek_next_number(
                    template.project_id, prefix, number_block.width(context.default_padding)
                )
                resolved[number_block.id] = self.block_handlers[
                    BlockKind.AUTO_NUMBER
                ].resolve(number_block, context)

        pieces = []
        for block in template.blocks:
            value = resolved[block.id]
            if value is None:
                value = self.block_handlers[block.kind].placeholder(block, context)
            pieces.append(value)
        return "".join(pieces)

    # Validation

    def validate_request(
        self,
        template: Template,
        values: Dict[str, Any],
        quantity: int,
        mode: GenerationMode,
        parent: Optional[Tag],
        parent_template: Optional[Template],
    ) -> List[str]:
        """Collect every reason a generation request cannot run."""
        errors = []
        max_batch = self.config.generation.max_batch_size

        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            errors.append(f"Quantity must be a positive integer, got {quantity!r}")
        elif quantity > max_batch:
            errors.append(f"Quantity {quantity} exceeds the maximum batch size of {max_batch}")

        if mode == GenerationMode.PARALLEL:
            if template.suffix_block is None:
                errors.append("Parallel mode requires a template with a suffix block")
            elif isinstance(quantity, int) and quantity > MAX_PARALLEL_SUFFIXES:
                errors.append(
                    f"Parallel mode supports at most {MAX_PARALLEL_SUFFIXES} tags (suffixes A-Z)"
                )

        errors.extend(
            parent_ref_errors(
                template, parent, parent_template, self.config.inheritance.wbs_categories
            )
        )

        if self.config.generation.require_complete_values:
            context = self._context(template, values, parent, parent_template)
            for block in template.blocks:
                if block.kind in (
                    BlockKind.DICTIONARY,
                    BlockKind.GLOBAL_VAR,
                    BlockKind.LEGACY_PARENT_REF,
                ) and self.block_handlers[block.kind].resolve(block, context) is None:
                    errors.append(f"No value resolved for {describe_block(block)}")
        return errors

    # Generation

    def _existing_full_tags(self, project_id: str) -> Set[str]:
        existing = {t.full_tag for t in self.snapshot.tags_for(project_id)}
        existing.update(tag for pid, tag in self._session_tags if pid == project_id)
        return existing

    def generate(
        self,
        template: Template,
        values: Optional[Dict[str, Any]] = None,
        quantity: int = 1,
        mode: Union[GenerationMode, str] = GenerationMode.SEQUENCE,
        parent: Optional[Union[Tag, str]] = None,
        hierarchy_parent_id: Optional[str] = None,
        actor: Optional[str] = None,
        dry_run: bool = False,
    ) -> GenerationResult:
        """
        Generate a batch of tags from a template.

        Args:
            template: Template to generate from
            values: User input keyed by block id
            quantity: Number of tags to produce
            mode: "sequence" or "parallel"
            parent: Inheritance-source tag (or id) for parent-reference blocks
            hierarchy_parent_id: Tag id the new tags are placed under
            actor: User recorded in the history entry
            dry_run: Build the tags without writing them or advancing the counter

        Returns:
            GenerationResult with the committed tags

        Raises:
            TemplateStructureError: If the template cannot be assembled
            TagValidationError: If the request is invalid
        """
        template.validate_structure()
        try:
            mode = GenerationMode(mode)
        except ValueError:
            raise TagValidationError([f"Unknown generation mode {mode!r}"])
        values = dict(values or {})
        actor = actor or self.config.generation.default_actor
        parent_tag, parent_template = self._parent_and_template(parent)

        errors = self.validate_request(
            template, values, quantity, mode, parent_tag, parent_template
        )
        if errors:
            raise TagValidationError(errors)

        project_id = template.project_id
        number_block = template.auto_number_block
        resolved = self._resolve_with(
            template, self._context(template, values, parent_tag, parent_template)
        )
        prefix = compute_prefix(template, resolved, placeholder="")

        start_number = None
        if number_block is not None:
            width = number_block.width(self.config.generation.default_padding)
            if dry_run:
                start_number = self.counter_engine.peek_next_number(project_id, prefix, width)
            else:
                start_number = self.counter_engine.get_next_number(project_id, prefix, width)

        self.logger.info(
            f"Generating {quantity} tag(s) from template '{template.name}' in {mode.value} mode"
            + (f", starting at {start_number}" if start_number is not None else "")
        )

        existing = self._existing_full_tags(project_id)
        result = GenerationResult(requested=quantity, start_number=start_number)

        for i in range(quantity):
            if mode == GenerationMode.PARALLEL:
                number, suffix = start_number, chr(ord("A") + i)
            else:
                number = start_number + i if start_number is not None else None
                suffix = None

            context = self._context(
                template, values, parent_tag, parent_template, number, suffix
            )
            parts = {
                block_id: value if value is not None else ""
                for block_id, value in self._resolve_with(template, context).items()
            }
            full_tag = assemble_full_tag(template, parts)

            if full_tag in existing:
                self.logger.warning(
                    f"Tag '{full_tag}' already exists, stopping after {len(result.created)} "
                    f"of {quantity} tag(s)"
                )
                result.stopped_on_collision = True
                result.collided_tag = full_tag
                break
            existing.add(full_tag)

            result.created.append(
                Tag(
                    project_id=project_id,
                    full_tag=full_tag,
                    parts=parts,
                    template_id=template.id,
                    status=TagStatus.DRAFT,
                    parent_id=hierarchy_parent_id,
                    history=[
                        AuditLog(action=self.config.history.created_action, user=actor)
                    ],
                )
            )

        if result.created and not dry_run:
            if number_block is not None:
                last = start_number if mode == GenerationMode.PARALLEL else start_number + len(result.created) - 1
                self.counter_engine.record_issued(project_id, prefix, last)
            self.sink.write(result.created)
            self._session_tags.update((project_id, t.full_tag) for t in result.created)

        self.logger.info(
            f"Created {len(result.created)} tag(s): {', '.join(result.full_tags) or '-'}"
        )
        return result

    # Edits

    def update_tag(
        self,
        tag: Tag,
        template: Template,
        part_updates: Optional[Dict[str, str]] = None,
        status: Optional[Union[TagStatus, str]] = None,
        notes: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> Tag:
        """
        Apply a manual edit to a tag.

        The full tag is re-assembled from the updated parts. Edits that would
        collide with another tag of the project are refused. Each changed field
        is listed in an audit entry appended to the tag's history, and the
        updated tag is written through the sink.

        Returns:
            The updated tag (the original tag if nothing changed)

        Raises:
            TagValidationError: Unknown block ids, or a collision
        """
        template.validate_structure()
        actor = actor or self.config.generation.default_actor
        part_updates = dict(part_updates or {})
        blocks_by_id = {block.id: block for block in template.blocks}

        unknown = [block_id for block_id in part_updates if block_id not in blocks_by_id]
        if unknown:
            raise TagValidationError(
                [f"Block '{block_id}' is not part of template '{template.name}'" for block_id in unknown]
            )

        changes = []
        parts = dict(tag.parts)
        for block_id, new_value in part_updates.items():
            old_value = parts.get(block_id, "")
            if new_value != old_value:
                changes.append(f"{describe_block(blocks_by_id[block_id])}: '{old_value}' -> '{new_value}'")
                parts[block_id] = new_value

        full_tag = assemble_full_tag(template, parts)
        if full_tag != tag.full_tag:
            clash = (tag.project_id, full_tag) in self._session_tags or any(
                t.full_tag == full_tag and t.id != tag.id
                for t in self.snapshot.tags_for(tag.project_id)
            )
            if clash:
                raise TagValidationError([f"Tag '{full_tag}' already exists"])

        new_status = TagStatus(status) if status is not None else tag.status
        if new_status != tag.status:
            changes.append(f"status: '{tag.status.value}' -> '{new_status.value}'")
        if notes is not None and notes != (tag.notes or ""):
            changes.append("notes updated")

        if not changes:
            return tag

        updated = tag.model_copy(
            update={
                "parts": parts,
                "full_tag": full_tag,
                "status": new_status,
                "notes": notes if notes is not None else tag.notes,
                "history": tag.history
                + [
                    AuditLog(
                        action=self.config.history.edited_action,
                        user=actor,
                        details="; ".join(changes),
                    )
                ],
            }
        )
        for index, existing in enumerate(self.snapshot.tags):
            if existing.id == tag.id:
                self.snapshot.tags[index] = updated
                break
        self.sink.write([updated])
        self._session_tags.discard((tag.project_id, tag.full_tag))
        self._session_tags.add((tag.project_id, full_tag))

        self.logger.verbose("INFO", f"Updated tag {tag.full_tag} -> {full_tag}: {'; '.join(changes)}")
        return updated

    # Assemblies

    def import_assembly(
        self,
        tree: Union[AbstractAssembly, AbstractComponent],
        root_tag: str,
        project_id: str,
        actor: Optional[str] = None,
        dry_run: bool = False,
    ) -> List[Tag]:
        """Expand an assembly pattern under a root tag and commit the resulting tags."""
        entries = expand_assembly(tree, root_tag)
        tags = assembly_to_tags(
            entries,
            project_id,
            actor or self.config.generation.default_actor,
            action=self.config.history.assembly_action,
        )
        if tags and not dry_run:
            self.sink.write(tags)
            self._session_tags.update((project_id, t.full_tag) for t in tags)
        self.logger.info(f"Expanded assembly under '{root_tag}' into {len(tags)} tag(s)")
        return tags
