"""
Careers Portal Backend
Job application intake with an admin review console.

Architecture:
- PostgreSQL: one `applications` table, attachments stored as blobs
- FastAPI: public submission endpoint + Basic-Auth admin surface
"""

__version__ = "1.0.0"
