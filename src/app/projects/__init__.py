"""Project records module -- XML extraction, stage mapping, and lead reconciliation.

Provides the generic XML tree helpers, Pydantic schemas for normalized
projects (Project, Bidder, TeamMember, Contact, Address, Phone), the record
extractor, identifier and stage canonicalization, the reconciler that joins
CRM leads to projects, and the ZIP archive ingestion pipeline.
"""
