"""
Database Schema Reference
=========================

This file provides a quick reference for all database tables and columns.
For actual SQLAlchemy models, see: translation_service/db/models.py

"""

# ============================================================================
# TRANSLATION_JOBS - One (content field, target language) unit of work
# ============================================================================
#
# | Column              | Type              | Constraints                    |
# |---------------------|-------------------|--------------------------------|
# | id                  | UUID              | PRIMARY KEY                    |
# | content_type        | VARCHAR(50)       | NOT NULL, INDEX                |
# | content_id          | VARCHAR(255)      | NOT NULL, INDEX ("<id>:<field>")|
# | source_language     | VARCHAR(10)       | NOT NULL, DEFAULT 'pl'         |
# | target_language     | VARCHAR(10)       | NOT NULL, INDEX                |
# | source_content      | TEXT              | NOT NULL                       |
# | translated_content  | TEXT              | NULLABLE                       |
# | status              | ENUM(JobStatus)   | NOT NULL, DEFAULT 'pending'    |
# | characters_used     | INTEGER           | NOT NULL, DEFAULT 0            |
# | error_message       | TEXT              | NULLABLE                       |
# | priority_marker     | VARCHAR(50)       | NULLABLE, INDEX                |
# | priority_started_at | TIMESTAMP(TZ)     | NULLABLE                       |
# | claimed_by          | VARCHAR(100)      | NULLABLE (batch/drain token)   |
# | lease_expires_at    | TIMESTAMP(TZ)     | NULLABLE                       |
# | created_at          | TIMESTAMP(TZ)     | NOT NULL, INDEX                |
# | updated_at          | TIMESTAMP(TZ)     | NOT NULL                       |
#
# Enums:
#   JobStatus: 'pending' | 'processing' | 'completed' | 'failed'
#
# Transitions:
#   pending -> processing -> completed | failed   (never back to pending)
#
# Content Types:
#   'faq'      - fields 'question', 'answer'
#   'product'  - fields 'model', 'shortDescription', 'additionalDescription'
#   'homepage' - free-form fields
#
# Duplicates per (content_type, content_id, target_language) are allowed.


# ============================================================================
# TRANSLATION_STATS - Monthly character budget
# ============================================================================
#
# | Column           | Type              | Constraints                       |
# |------------------|-------------------|-----------------------------------|
# | id               | UUID              | PRIMARY KEY                       |
# | month_year       | VARCHAR(7)        | NOT NULL, UNIQUE ("YYYY-MM")      |
# | characters_used  | INTEGER           | NOT NULL, DEFAULT 0               |
# | characters_limit | INTEGER           | NOT NULL, DEFAULT 500000          |
# | api_calls        | INTEGER           | NOT NULL, DEFAULT 0               |
# | created_at       | TIMESTAMP(TZ)     | NOT NULL                          |
# | updated_at       | TIMESTAMP(TZ)     | NOT NULL                          |
#
# Rows are created on first use and only ever incremented (upsert).


# ============================================================================
# DEEPL_API_KEYS - Translation API credentials
# ============================================================================
#
# | Column          | Type              | Constraints                        |
# |-----------------|-------------------|------------------------------------|
# | id              | UUID              | PRIMARY KEY                        |
# | name            | VARCHAR(100)      | NOT NULL                           |
# | api_key_encoded | TEXT              | NOT NULL (base64)                  |
# | api_key_masked  | VARCHAR(50)       | NOT NULL ("abcd...wxyz")           |
# | is_primary      | BOOLEAN           | NOT NULL, DEFAULT FALSE            |
# | is_active       | BOOLEAN           | NOT NULL, DEFAULT TRUE             |
# | status          | ENUM(KeyStatus)   | NOT NULL, DEFAULT 'active'         |
# | quota_used      | INTEGER           | NULLABLE                           |
# | quota_remaining | INTEGER           | NULLABLE                           |
# | quota_limit     | INTEGER           | NULLABLE                           |
# | last_test_at    | TIMESTAMP(TZ)     | NULLABLE                           |
# | last_sync_at    | TIMESTAMP(TZ)     | NULLABLE                           |
# | created_at      | TIMESTAMP(TZ)     | NOT NULL                           |
# | updated_at      | TIMESTAMP(TZ)     | NOT NULL                           |
#
# Enums:
#   KeyStatus: 'active' | 'error' | 'quota_exceeded'


# ============================================================================
# TRANSLATION_LOGS - Product translation audit trail (append-only)
# ============================================================================
#
# | Column             | Type          | Constraints                         |
# |--------------------|---------------|-------------------------------------|
# | id                 | UUID          | PRIMARY KEY                         |
# | product_id         | VARCHAR(100)  | NULLABLE, INDEX                     |
# | api_key_used       | VARCHAR(50)   | NOT NULL (masked key or 'unknown')  |
# | translation_mode   | VARCHAR(20)   | NOT NULL                            |
# | field_name         | VARCHAR(100)  | NOT NULL                            |
# | source_language    | VARCHAR(10)   | NOT NULL                            |
# | target_language    | VARCHAR(10)   | NOT NULL                            |
# | status             | VARCHAR(20)   | NOT NULL ('success' | 'error')      |
# | characters_used    | INTEGER       | NOT NULL, DEFAULT 0                 |
# | error_details      | TEXT          | NULLABLE                            |
# | processing_time_ms | INTEGER       | NULLABLE                            |
# | request_payload    | JSON          | NULLABLE                            |
# | response_payload   | JSON          | NULLABLE                            |
# | created_at         | TIMESTAMP(TZ) | NOT NULL, INDEX                     |


# ============================================================================
# PRODUCT_TRANSLATIONS - Translated product fields read by the storefront
# ============================================================================
#
# | Column           | Type          | Constraints                           |
# |------------------|---------------|---------------------------------------|
# | id               | UUID          | PRIMARY KEY                           |
# | product_id       | VARCHAR(100)  | NOT NULL, INDEX                       |
# | language         | VARCHAR(10)   | NOT NULL                              |
# | field_name       | VARCHAR(100)  | NOT NULL                              |
# | translated_value | TEXT          | NOT NULL                              |
# | created_at       | TIMESTAMP(TZ) | NOT NULL                              |
# | updated_at       | TIMESTAMP(TZ) | NOT NULL                              |
#
# UNIQUE (product_id, language, field_name) - upserted on every translation


# ============================================================================
# ACCESS_KEYS - Admin API authentication
# ============================================================================
#
# | Column                | Type              | Constraints                    |
# |-----------------------|-------------------|--------------------------------|
# | id                    | UUID              | PRIMARY KEY                    |
# | key_hash              | VARCHAR(255)      | NOT NULL, UNIQUE, INDEX        |
# | key_prefix            | VARCHAR(12)       | NOT NULL, INDEX                |
# | name                  | VARCHAR(100)      | NOT NULL                       |
# | owner                 | VARCHAR(100)      | NOT NULL                       |
# | scopes                | JSON              | DEFAULT [] ('read', 'manage')  |
# | rate_limit_per_minute | INTEGER           | NOT NULL, DEFAULT 60           |
# | rate_limit_per_hour   | INTEGER           | NOT NULL, DEFAULT 500          |
# | is_active             | BOOLEAN           | NOT NULL, DEFAULT TRUE         |
# | created_at            | TIMESTAMP(TZ)     | NOT NULL, DEFAULT now()        |
# | expires_at            | TIMESTAMP(TZ)     | NULLABLE                       |


# ============================================================================
# SOURCE CONTENT (owned by the site CRUD, read-only here)
# ============================================================================
#
# products: id, name, short_description, detailed_description, initial_lift,
#           condition, drive_type, mast, wheels, foldable_platform,
#           additional_options, created_at
# faqs:     id, question, answer, language, is_active, display_order,
#           created_at


# ============================================================================
# INDEXES
# ============================================================================
#
# | Table                | Index Name                          | Columns         |
# |----------------------|-------------------------------------|-----------------|
# | translation_jobs     | ix_translation_jobs_status          | status          |
# | translation_jobs     | ix_translation_jobs_created_at      | created_at      |
# | translation_jobs     | ix_translation_jobs_priority_marker | priority_marker |
# | translation_logs     | ix_translation_logs_created_at      | created_at      |
# | access_keys          | ix_access_keys_key_prefix           | key_prefix      |


# ============================================================================
# SUPPORTED LANGUAGES
# ============================================================================
#
# | Code | Language | Source | Target |
# |------|----------|--------|--------|
# | pl   | Polish   | ✓      |        |
# | en   | English  |        | ✓      |
# | cs   | Czech    |        | ✓      |
# | sk   | Slovak   |        | ✓      |
# | de   | German   |        | ✓      |
