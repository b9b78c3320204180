"""
Pydantic schemas for data validation and serialization.

Schemas:
    envelope: The uniform envelope every source emits and the sink indexes

Usage:
    from schemas.envelope import KissEnvelope

Example:
    envelope = KissEnvelope(
        id="smoelenboek_123",
        title="Jan Jansen",
        object_meta="Adviseur Burgerzaken",
        payload={"id": "123"}
    )

    envelope.to_document("Smoelenboek")
    # {"id": ..., "title": ..., "object_meta": ..., "object_bron": "Smoelenboek",
    #  "Smoelenboek": {"id": "123"}}
"""

from schemas.envelope import KissEnvelope

__all__ = [
    "KissEnvelope",
]
