import pytest

from app.application.ports.image_transform import TransformResult
from app.application.services.ingestion_service import (
    INVALID_TYPE_MESSAGE,
    IngestionOutcome,
    IngestionPipeline,
    OwnerRef,
)
from app.exceptions import InvalidRoleError, NotFoundError, StorageError, ValidationError
from fakes import FakeStorage, FakeTransformer, make_image_bytes


def make_pipeline(accounts, images, storage, transformer=None, **kwargs):
    return IngestionPipeline(
        storage=storage,
        image_repo=images,
        account_repo=accounts,
        transformer=transformer or FakeTransformer(),
        **kwargs,
    )


def test_ingest_stores_original_and_variants(accounts, images, storage):
    client = accounts.add("grower@farm.test")
    transformer = FakeTransformer()
    pipeline = make_pipeline(accounts, images, storage, transformer)

    result = pipeline.ingest(make_image_bytes("TIFF"), "field.tif", "image/tiff", OwnerRef(email="Grower@Farm.test"))

    assert result.outcome == IngestionOutcome.STORED
    assert result.ok
    assert transformer.calls == 1
    record = result.image
    assert record.account_id == client.id
    assert record.storage_key.startswith(f"originals/{client.id}/")
    assert record.thumbnail_key.startswith(f"thumbnails/{client.id}/")
    assert record.optimized_key.startswith(f"optimized/{client.id}/")
    assert record.storage_key.endswith(".tif")
    assert record.processing_status == "completed"
    assert record.original_filename == "field.tif"
    assert record.file_name == record.storage_key.rsplit("/", 1)[-1]
    assert record.dimensions == "2400x1600"
    assert record.compression_ratio == 0.5
    assert storage.content_types[record.storage_key] == "image/tiff"
    assert storage.content_types[record.thumbnail_key] == "image/jpeg"
    assert sorted(result.stored_keys) == sorted(record.object_keys)
    assert images.get(record.id) is record


def test_ingest_without_file_is_rejected(accounts, images, storage):
    accounts.add("grower@farm.test")
    pipeline = make_pipeline(accounts, images, storage)
    with pytest.raises(ValidationError) as exc:
        pipeline.ingest(b"", "field.tif", "image/tiff", OwnerRef(email="grower@farm.test"))
    assert exc.value.message == "No file uploaded"
    assert storage.objects == {}


def test_ingest_rejects_unsupported_type_before_any_write(accounts, images, storage):
    accounts.add("grower@farm.test")
    pipeline = make_pipeline(accounts, images, storage)
    with pytest.raises(ValidationError) as exc:
        pipeline.ingest(make_image_bytes("GIF", mode="P", color=1), "field.gif", "image/gif",
                        OwnerRef(email="grower@farm.test"))
    assert exc.value.message == INVALID_TYPE_MESSAGE
    assert storage.objects == {}
    assert images.images == {}


def test_generic_content_type_falls_back_to_extension(accounts, images, storage):
    accounts.add("grower@farm.test")
    pipeline = make_pipeline(accounts, images, storage)
    result = pipeline.ingest(make_image_bytes("TIFF"), "field.tif", "application/octet-stream",
                             OwnerRef(email="grower@farm.test"))
    assert result.ok
    assert result.image.mime_type == "image/tiff"


def test_generic_content_type_with_unknown_extension_is_rejected(accounts, images, storage):
    accounts.add("grower@farm.test")
    pipeline = make_pipeline(accounts, images, storage)
    with pytest.raises(ValidationError):
        pipeline.ingest(b"data", "notes.txt", "application/octet-stream", OwnerRef(email="grower@farm.test"))


def test_ingest_rejects_oversized_file(accounts, images, storage):
    accounts.add("grower@farm.test")
    transformer = FakeTransformer()
    pipeline = make_pipeline(accounts, images, storage, transformer, max_bytes=1024 * 1024)
    with pytest.raises(ValidationError) as exc:
        pipeline.ingest(b"x" * (1024 * 1024 + 1), "field.png", "image/png", OwnerRef(email="grower@farm.test"))
    assert exc.value.message == "File too large. Maximum size is 1MB."
    assert storage.objects == {}
    assert transformer.calls == 0


def test_type_is_checked_before_size(accounts, images, storage):
    accounts.add("grower@farm.test")
    pipeline = make_pipeline(accounts, images, storage, max_bytes=10)
    with pytest.raises(ValidationError) as exc:
        pipeline.ingest(b"x" * 100, "field.gif", "image/gif", OwnerRef(email="grower@farm.test"))
    assert exc.value.message == INVALID_TYPE_MESSAGE


def test_ingest_requires_owner(accounts, images, storage):
    pipeline = make_pipeline(accounts, images, storage)
    with pytest.raises(ValidationError) as exc:
        pipeline.ingest(make_image_bytes(), "field.png", "image/png", OwnerRef())
    assert exc.value.message == "Client email or client ID is required"


def test_ingest_unknown_client(accounts, images, storage):
    pipeline = make_pipeline(accounts, images, storage)
    with pytest.raises(NotFoundError):
        pipeline.ingest(make_image_bytes(), "field.png", "image/png", OwnerRef(email="nobody@farm.test"))
    assert storage.objects == {}


def test_ingest_refuses_admin_as_owner(accounts, images, storage):
    admin = accounts.add("ops@farm.test", role="ADMIN")
    pipeline = make_pipeline(accounts, images, storage)
    with pytest.raises(InvalidRoleError):
        pipeline.ingest(make_image_bytes(), "field.png", "image/png", OwnerRef(account_id=admin.id))


def test_direct_ingest_skips_transform(accounts, images, storage):
    client = accounts.add("grower@farm.test")
    transformer = FakeTransformer()
    pipeline = make_pipeline(accounts, images, storage, transformer)

    result = pipeline.ingest(make_image_bytes(), "field.png", "image/png", OwnerRef(account_id=client.id),
                             transform=False)

    assert result.ok
    assert transformer.calls == 0
    assert list(storage.objects) == [result.image.storage_key]
    assert result.image.thumbnail_url is None
    assert result.image.width is None
    assert result.image.processing_status == "completed"
    assert result.validation is None


def test_direct_ingest_uses_call_size_limit(accounts, images, storage):
    client = accounts.add("grower@farm.test")
    pipeline = make_pipeline(accounts, images, storage)
    with pytest.raises(ValidationError):
        pipeline.ingest(b"x" * 2048, "field.png", "image/png", OwnerRef(account_id=client.id),
                        transform=False, max_bytes=1024)


def test_transform_failure_still_stores_original(accounts, images, storage):
    client = accounts.add("grower@farm.test")
    pipeline = make_pipeline(accounts, images, storage, FakeTransformer(TransformResult(error="cannot decode")))

    result = pipeline.ingest(b"not really a tiff", "field.tif", "image/tiff", OwnerRef(account_id=client.id))

    assert result.outcome == IngestionOutcome.STORED
    assert result.image.processing_status == "failed"
    assert result.image.thumbnail_url is None
    assert result.image.optimized_url is None
    assert result.stored_keys == [result.image.storage_key]


def test_thumbnail_upload_failure_marks_status_failed(accounts, images):
    client = accounts.add("grower@farm.test")
    storage = FakeStorage(fail_prefixes=("thumbnails/",))
    pipeline = make_pipeline(accounts, images, storage)

    result = pipeline.ingest(make_image_bytes("TIFF"), "field.tif", "image/tiff", OwnerRef(account_id=client.id))

    assert result.ok
    assert result.image.thumbnail_url is None
    assert result.image.thumbnail_key is None
    assert result.image.optimized_url is not None
    assert result.image.processing_status == "failed"


def test_original_upload_failure_writes_nothing(accounts, images):
    client = accounts.add("grower@farm.test")
    storage = FakeStorage(fail_prefixes=("originals/",))
    pipeline = make_pipeline(accounts, images, storage)

    result = pipeline.ingest(make_image_bytes("TIFF"), "field.tif", "image/tiff", OwnerRef(account_id=client.id))

    assert result.outcome == IngestionOutcome.FAILED
    assert isinstance(result.error, StorageError)
    assert storage.objects == {}
    assert images.images == {}


def test_metadata_failure_reports_orphaned_objects(accounts, images, storage):
    client = accounts.add("grower@farm.test")
    images.fail_create = True
    pipeline = make_pipeline(accounts, images, storage)

    result = pipeline.ingest(make_image_bytes("TIFF"), "field.tif", "image/tiff", OwnerRef(account_id=client.id))

    assert result.outcome == IngestionOutcome.STORED_WITHOUT_METADATA
    assert not result.ok
    assert result.image is None
    assert len(result.stored_keys) == 3
    assert set(result.stored_keys) == set(storage.objects)
    assert result.error.status_code == 500


def test_filename_directories_are_dropped(accounts, images, storage):
    client = accounts.add("grower@farm.test")
    pipeline = make_pipeline(accounts, images, storage)
    result = pipeline.ingest(make_image_bytes(), "../../etc/field.png", "image/png", OwnerRef(account_id=client.id))
    assert result.image.original_filename == "field.png"
    assert result.image.storage_key.endswith(".png")


@pytest.mark.parametrize("content_type, filename, stored_type", [
    ("image/tiff", "field.tiff", "image/tiff"),
    ("image/tif", "field.tif", "image/tiff"),
    ("image/png", "field.png", "image/png"),
    ("image/jpeg", "field.jpeg", "image/jpeg"),
    ("image/jpg", "field.jpg", "image/jpeg"),
])
def test_every_accepted_type_is_stored_under_canonical_name(accounts, images, storage, content_type, filename, stored_type):
    client = accounts.add("grower@farm.test")
    pipeline = make_pipeline(accounts, images, storage)

    result = pipeline.ingest(make_image_bytes(), filename, content_type, OwnerRef(account_id=client.id))

    assert result.ok
    assert result.image.mime_type == stored_type
    assert storage.content_types[result.image.storage_key] == stored_type


def test_pdf_is_rejected_without_a_row(accounts, images, storage):
    client = accounts.add("grower@farm.test")
    pipeline = make_pipeline(accounts, images, storage)
    with pytest.raises(ValidationError) as exc:
        pipeline.ingest(b"%PDF-1.7", "report.pdf", "application/pdf", OwnerRef(account_id=client.id))
    assert exc.value.message == INVALID_TYPE_MESSAGE
    assert images.images == {}
    assert storage.objects == {}
