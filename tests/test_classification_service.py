"""
Document AI Assistant — Classification Service Tests
=====================================================

What we test:
    ✅ A well-formed answer updates the stored document
    ✅ Suggested folders are applied only when owned by the caller
    ✅ Schema violations are MalformedResponseError and write nothing
    ✅ Folder patterns summarise existing filing habits
"""

import copy
import json
from types import SimpleNamespace
from uuid import uuid4

import pytest

from docassist.exceptions import MalformedResponseError, NotFoundError
from docassist.schemas.classification import ClassifyRequest
from docassist.services.classification_service import (
    build_folder_patterns,
    classification_service,
    validate_classification,
)
from docassist.services.content_service import document_service
from docassist.services.folder_service import folder_service

VALID_ANSWER = {
    "classification": {
        "documentType": "user_story",
        "confidence": 0.92,
        "businessPurpose": "Lets customers reset passwords",
        "keyThemes": ["authentication", "self-service"],
        "stakeholders": ["Product Owner"],
        "maturityLevel": "intermediate",
    },
    "folderRecommendation": {
        "suggestedFolderId": None,
        "suggestedFolderName": "User Stories",
        "confidence": 0.8,
        "reasoning": "Matches existing stories",
        "alternativeOptions": [],
    },
    "organizationInsights": {
        "isWellOrganized": True,
        "misplacedDocuments": [],
        "suggestedNewFolders": [],
        "improvementRecommendations": "",
    },
    "contentInsights": {
        "completeness": "draft",
        "qualityScore": 0.6,
        "missingElements": ["acceptance criteria"],
        "recommendations": "Add acceptance criteria",
    },
}


def _answer(folder_id=None, **overrides):
    data = copy.deepcopy(VALID_ANSWER)
    data["folderRecommendation"]["suggestedFolderId"] = str(folder_id) if folder_id else None
    for path, value in overrides.items():
        section, field = path.split(".")
        data[section][field] = value
    return json.dumps(data)


class TestValidateClassification:
    def test_valid_answer(self):
        result = validate_classification(VALID_ANSWER)
        assert result.classification.document_type == "user_story"
        assert result.content_insights.missing_elements == ["acceptance criteria"]

    def test_unknown_document_type(self):
        data = json.loads(_answer(**{"classification.documentType": "novel"}))
        with pytest.raises(MalformedResponseError):
            validate_classification(data)

    def test_confidence_out_of_range(self):
        data = json.loads(_answer(**{"classification.confidence": 1.5}))
        with pytest.raises(MalformedResponseError):
            validate_classification(data)

    @pytest.mark.parametrize(
        "override",
        [
            {"classification.confidence": "0.9"},
            {"folderRecommendation.confidence": "1"},
            {"organizationInsights.isWellOrganized": "yes"},
            {"contentInsights.qualityScore": "0.5"},
        ],
    )
    def test_string_typed_scores_and_flags(self, override):
        data = json.loads(_answer(**override))
        with pytest.raises(MalformedResponseError):
            validate_classification(data)

    def test_integer_confidence_accepted(self):
        data = json.loads(_answer(**{"classification.confidence": 1}))
        assert validate_classification(data).classification.confidence == 1.0

    def test_missing_section(self):
        data = copy.deepcopy(VALID_ANSWER)
        del data["contentInsights"]
        with pytest.raises(MalformedResponseError):
            validate_classification(data)


class TestClassify:
    async def test_updates_document_and_files_it(self, session, owner, fake_llm):
        folder = await folder_service.create_row(session, owner, name="User Stories")
        document = await document_service.create_row(session, owner, title="Reset password")
        fake_llm.generate.return_value = _answer(folder.id)

        result = await classification_service.classify(
            session,
            owner,
            ClassifyRequest(document_id=document.id, content="As a user...", title="Reset password"),
            llm=fake_llm,
        )

        assert result.success is True
        assert result.document_updated is True
        stored = await document_service.get(session, owner, document.id)
        assert stored.artifact_type == "user_story"
        assert stored.tags == ["authentication", "self-service"]
        assert stored.folder_id == folder.id
        assert '"User Stories"' in fake_llm.generate.call_args.args[0]

    async def test_foreign_folder_suggestion_ignored(self, session, owner, other_owner, fake_llm):
        foreign = await folder_service.create_row(session, other_owner, name="Theirs")
        document = await document_service.create_row(session, owner, title="Doc")
        fake_llm.generate.return_value = _answer(foreign.id)

        await classification_service.classify(
            session,
            owner,
            ClassifyRequest(document_id=document.id, content="text", title="Doc"),
            llm=fake_llm,
        )

        stored = await document_service.get(session, owner, document.id)
        assert stored.folder_id is None
        assert stored.artifact_type == "user_story"

    async def test_without_document_nothing_is_written(self, session, owner, fake_llm):
        fake_llm.generate.return_value = _answer()

        result = await classification_service.classify(
            session, owner, ClassifyRequest(content="text", title="Loose"), llm=fake_llm
        )

        assert result.document_updated is False

    async def test_malformed_answer_leaves_document_alone(self, session, owner, fake_llm):
        document = await document_service.create_row(
            session, owner, title="Doc", artifact_type="Epic"
        )
        fake_llm.generate.return_value = _answer(**{"contentInsights.completeness": "finished"})

        with pytest.raises(MalformedResponseError):
            await classification_service.classify(
                session,
                owner,
                ClassifyRequest(document_id=document.id, content="text", title="Doc"),
                llm=fake_llm,
            )

        stored = await document_service.get(session, owner, document.id)
        assert stored.artifact_type == "Epic"

    async def test_unknown_document_checked_before_provider(self, session, owner, fake_llm):
        with pytest.raises(NotFoundError):
            await classification_service.classify(
                session,
                owner,
                ClassifyRequest(document_id=uuid4(), content="text", title="Doc"),
                llm=fake_llm,
            )
        fake_llm.generate.assert_not_called()


class TestFolderPatterns:
    def test_summarises_documents_per_folder(self):
        folder = SimpleNamespace(id=uuid4(), name="Epics")
        docs = [
            SimpleNamespace(folder_id=folder.id, file_type="md", artifact_type="Epic", title="E1"),
            SimpleNamespace(folder_id=folder.id, file_type="pdf", artifact_type=None, title="E2"),
            SimpleNamespace(folder_id=None, file_type="txt", artifact_type=None, title="Loose"),
        ]

        [pattern] = build_folder_patterns([folder], docs)

        assert pattern["documentCount"] == 2
        assert pattern["commonFileTypes"] == ["md", "pdf"]
        assert pattern["commonArtifactTypes"] == ["Epic"]
        assert pattern["sampleTitles"] == ["E1", "E2"]
