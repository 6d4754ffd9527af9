"""
High level client for Lucidtech AI Services

Combines the endpoint calls of ``Client`` into document workflows and
returns typed responses.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .client import Client, Feedback
from .exceptions import ClientError, ValidationError

logger = logging.getLogger(__name__)

SUPPORTED_CONTENT_TYPES = {
    'jpeg': 'image/jpeg',
    'pdf': 'application/pdf',
}

_EXTENSIONS = {
    '.jpeg': 'jpeg',
    '.jpg': 'jpeg',
    '.pdf': 'pdf',
}

_HEADER_SIZE = 10


def _sniff_file_type(header: bytes) -> Optional[str]:
    if b'PDF' in header:
        return 'pdf'
    if header[:2] == b'\xff\xd8':
        return 'jpeg'
    return None


def get_content_type(document_path: Union[str, Path]) -> str:
    """
    Mime type of a document.

    The file header decides; the extension is used when the header is not
    recognized.

    Raises:
        ValidationError: If the document is neither jpeg nor pdf
    """
    path = Path(document_path)
    with path.open('rb') as f:
        header = f.read(_HEADER_SIZE)

    file_type = _sniff_file_type(header) or _EXTENSIONS.get(path.suffix.lower())
    if file_type not in SUPPORTED_CONTENT_TYPES:
        raise ValidationError(
            f"The format of {document_path} is not supported, use jpeg or pdf",
            {"path": str(document_path)}
        )
    return SUPPORTED_CONTENT_TYPES[file_type]


def _field(response: Any, key: str) -> Any:
    try:
        return response[key]
    except (KeyError, TypeError) as e:
        raise ClientError.decode_failed(e, body=json.dumps(response)) from e


class _JsonMixin:
    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError

    def to_json(self, indent: Optional[int] = None) -> str:
        """Serialize to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


@dataclass
class Prediction(_JsonMixin):
    """Prediction made by the model on one document"""
    document_id: str
    consent_id: str
    model_name: str
    fields: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'documentId': self.document_id,
            'consentId': self.consent_id,
            'modelName': self.model_name,
            'fields': self.fields,
        }


@dataclass
class FeedbackResponse(_JsonMixin):
    """Confirmation of uploaded feedback"""
    document_id: str
    consent_id: str
    upload_url: str
    content_type: str
    feedback: Feedback = field(default_factory=list)

    @classmethod
    def from_response(cls, response: Any) -> 'FeedbackResponse':
        return cls(
            document_id=_field(response, 'documentId'),
            consent_id=_field(response, 'consentId'),
            upload_url=_field(response, 'uploadUrl'),
            content_type=_field(response, 'contentType'),
            feedback=_field(response, 'feedback'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'documentId': self.document_id,
            'consentId': self.consent_id,
            'uploadUrl': self.upload_url,
            'contentType': self.content_type,
            'feedback': self.feedback,
        }


@dataclass
class RevokeResponse(_JsonMixin):
    """Documents deleted when a consent was revoked"""
    consent_id: str
    document_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_response(cls, response: Any) -> 'RevokeResponse':
        return cls(
            consent_id=_field(response, 'consentId'),
            document_ids=list(_field(response, 'documentIds')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'consentId': self.consent_id,
            'documentIds': self.document_ids,
        }


class ApiClient(Client):
    """High level client to invoke API methods of Lucidtech AI Services."""

    def predict(self, document_path: Union[str, Path], model_name: str, consent_id: str = "default") -> Prediction:
        """
        Upload a document and run inference on it.

        Args:
            document_path: Path to a jpeg or pdf document
            model_name: Name of the model, e.g. invoice
            consent_id: Identifier marking the owner of the document

        Returns:
            Prediction: Predicted fields of the document

        Raises:
            ValidationError: If the document type is not supported
            ClientError: If an API call fails
        """
        content_type = get_content_type(document_path)
        content = Path(document_path).read_bytes()

        document = self.post_documents(content, content_type, consent_id)
        document_id = _field(document, 'documentId')
        logger.info(f"Created document {document_id}, running model {model_name}")

        response = self.post_predictions(document_id, model_name)
        return Prediction(document_id, consent_id, model_name, list(_field(response, 'predictions')))

    def send_feedback(self, document_id: str, feedback: Feedback) -> FeedbackResponse:
        """
        Send ground truth values for a document.

        Args:
            document_id: Document the feedback belongs to
            feedback: Items such as {"label": "purchase_date", "value": "2007-07-30"}

        Returns:
            FeedbackResponse: The feedback as stored
        """
        return FeedbackResponse.from_response(self.post_document_id(document_id, feedback))

    def revoke_consent(self, consent_id: str) -> RevokeResponse:
        """
        Revoke consent and delete all documents associated with it.

        Returns:
            RevokeResponse: Consent id and the ids of the deleted documents
        """
        return RevokeResponse.from_response(self.delete_consent_id(consent_id))
