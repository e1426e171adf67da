"""
Tests for document metadata, sharing and soft deletion.
"""

import uuid
from datetime import timedelta

import pytest
from sqlalchemy import select

from api.services import applications as application_service
from api.services import documents as document_service
from core.config import settings
from core.exceptions import NotFoundError, ValidationError
from core.utils.datetime import now as utc_now
from database.models.documents import Document, DocumentType


def _fields(**overrides):
    fields = {
        "name": "Resume",
        "type": "Resume",
        "file_path": "uploads/ada/resume.pdf",
        "file_name": "my resume.pdf",
        "file_size": 1536,
        "mime_type": "application/pdf",
    }
    fields.update(overrides)
    return fields


class TestCreateDocument:
    """Registering documents."""

    @pytest.mark.asyncio
    async def test_private_by_default(self, session, user):
        document = await document_service.create_document(session, user.id, _fields())

        assert document.type == DocumentType.RESUME
        assert document.file_name == "my_resume.pdf"
        assert document.is_public is False
        assert document.share_url is None
        assert document_service.share_link(document) is None
        assert document.formatted_file_size() == "1.5 KB"

    @pytest.mark.asyncio
    async def test_public_gets_share_token(self, session, user):
        document = await document_service.create_document(
            session, user.id, _fields(is_public=True)
        )

        assert len(document.share_url) == 32
        assert document_service.share_link(document) == (
            f"{settings.share_url_base.rstrip('/')}/{document.share_url}"
        )

    @pytest.mark.asyncio
    async def test_link_to_own_application(self, session, user, company):
        application = await application_service.create_application(
            session, user.id, {"company_id": company.id, "job_title": "Engineer"}
        )
        document = await document_service.create_document(
            session, user.id, _fields(job_application_id=application.id)
        )
        assert document.job_application_id == application.id

    @pytest.mark.asyncio
    async def test_cannot_link_other_users_application(
        self, session, user, other_user, company
    ):
        application = await application_service.create_application(
            session, other_user.id, {"company_id": company.id, "job_title": "Engineer"}
        )
        with pytest.raises(NotFoundError):
            await document_service.create_document(
                session, user.id, _fields(job_application_id=application.id)
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides", [
        {"type": "Selfie"},
        {"file_size": -5},
        {"file_size": None},
        {"tags": "one,two"},
        {"owner": "me"},
    ])
    async def test_rejects_malformed(self, session, user, overrides):
        with pytest.raises(ValidationError):
            await document_service.create_document(session, user.id, _fields(**overrides))


class TestSharing:
    """Visibility changes and opening shared links."""

    @pytest.mark.asyncio
    async def test_publish_then_unpublish(self, session, user):
        document = await document_service.create_document(session, user.id, _fields())

        shared = await document_service.set_visibility(session, user.id, document.id, True)
        token = shared.share_url
        assert token

        # Publishing again keeps the same link
        again = await document_service.set_visibility(session, user.id, document.id, True)
        assert again.share_url == token

        private = await document_service.set_visibility(session, user.id, document.id, False)
        assert private.share_url is None
        with pytest.raises(NotFoundError):
            await document_service.open_shared_document(session, token)

    @pytest.mark.asyncio
    async def test_open_counts_downloads(self, session, user):
        document = await document_service.create_document(
            session, user.id, _fields(is_public=True)
        )

        await document_service.open_shared_document(session, document.share_url)
        opened = await document_service.open_shared_document(session, document.share_url)

        assert opened.download_count == 2

    @pytest.mark.asyncio
    async def test_expired_share(self, session, user):
        document = await document_service.create_document(
            session,
            user.id,
            _fields(is_public=True, expires_at=utc_now() - timedelta(minutes=1)),
        )
        assert document.is_expired()
        with pytest.raises(NotFoundError):
            await document_service.open_shared_document(session, document.share_url)

    @pytest.mark.asyncio
    async def test_unknown_token(self, session):
        with pytest.raises(NotFoundError):
            await document_service.open_shared_document(session, "f" * 32)


class TestSoftDelete:
    """Deleting a document only hides it."""

    @pytest.mark.asyncio
    async def test_row_kept_but_hidden(self, session, user):
        document = await document_service.create_document(
            session, user.id, _fields(is_public=True)
        )
        await document_service.delete_document(session, user.id, document.id)

        assert await document_service.list_documents(session, user.id) == []
        row = (
            await session.execute(select(Document).where(Document.id == document.id))
        ).scalar_one()
        assert row.is_active is False
        assert row.share_url is None

        with pytest.raises(NotFoundError):
            await document_service.delete_document(session, user.id, document.id)

    @pytest.mark.asyncio
    async def test_other_user_cannot_delete(self, session, user, other_user):
        document = await document_service.create_document(session, user.id, _fields())
        with pytest.raises(NotFoundError):
            await document_service.delete_document(session, other_user.id, document.id)


class TestListDocuments:
    """Listing with filters."""

    @pytest.mark.asyncio
    async def test_filters(self, session, user, other_user):
        await document_service.create_document(session, user.id, _fields())
        await document_service.create_document(
            session, user.id, _fields(name="Letter", type="Cover Letter")
        )
        await document_service.create_document(session, other_user.id, _fields())

        assert len(await document_service.list_documents(session, user.id)) == 2
        letters = await document_service.list_documents(
            session, user.id, type="Cover Letter"
        )
        assert [d.name for d in letters] == ["Letter"]
        assert await document_service.list_documents(
            session, user.id, job_application_id=uuid.uuid4()
        ) == []
