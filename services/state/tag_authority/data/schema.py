"""Record-shape declaration for the Tagged Record table."""

from __future__ import annotations

from resources.substrates.sqlite.schema import FieldSpec, RecordSchema, UniqueSpec

TAGGED_RECORD_SCHEMA = RecordSchema(
    name="tagged_record",
    fields=(
        FieldSpec("id", "integer", primary_key=True),
        FieldSpec("owner_id", "integer", default=0),
        FieldSpec("key", "string", column="tag_key", default=""),
        FieldSpec("value", "string", column="tag_value", default=""),
        FieldSpec("created_at", "timestamp"),
        FieldSpec("updated_at", "timestamp"),
        FieldSpec("created_by", "integer", default=0),
        FieldSpec("updated_by", "integer", default=0),
    ),
    unique=(UniqueSpec("idx_owner_id_key", ("owner_id", "key")),),
)
