from __future__ import annotations

import os
from dataclasses import dataclass

@dataclass(frozen=True)
class Settings:
    # AWS
    aws_region: str = os.environ.get("AWS_REGION", "us-east-1")

    # Cognito (optional wiring; auth is pluggable)
    cognito_user_pool_id: str = os.environ.get("COGNITO_USER_POOL_ID", "")
    cognito_region: str = os.environ.get("COGNITO_REGION", "")
    cognito_app_client_id: str = os.environ.get("COGNITO_APP_CLIENT_ID", "")
    cognito_expected_token_use: str = os.environ.get("COGNITO_EXPECTED_TOKEN_USE", "access")

    # Shipments table and its equality-lookup indexes
    shipments_table_name: str = os.environ.get("SHIPMENTS_TABLE_NAME", "shipments")
    shipment_id_index: str = os.environ.get("SHIPMENT_ID_INDEX", "shipmentID-index")
    tracking_number_index: str = os.environ.get("TRACKING_NUMBER_INDEX", "trackingNumber-index")
    pro_number_index: str = os.environ.get("PRO_NUMBER_INDEX", "proNumber-index")
    booking_reference_index: str = os.environ.get("BOOKING_REFERENCE_INDEX", "bookingReferenceNumber-index")
    reference_number_index: str = os.environ.get("REFERENCE_NUMBER_INDEX", "referenceNumber-index")
    shipper_reference_index: str = os.environ.get("SHIPPER_REFERENCE_INDEX", "shipperReferenceNumber-index")
    company_booked_at_index: str = os.environ.get("COMPANY_BOOKED_AT_INDEX", "companyID-bookedAt-index")

    users_table_name: str = os.environ.get("USERS_TABLE_NAME", "users")
    match_log_table_name: str = os.environ.get("MATCH_LOG_TABLE_NAME", "ap_matching_log")

    # Manual search bounds
    manual_search_lookup_limit: int = int(os.environ.get("MANUAL_SEARCH_LOOKUP_LIMIT", "5"))
    manual_search_max_results: int = int(os.environ.get("MANUAL_SEARCH_MAX_RESULTS", "20"))
    manual_search_max_term_length: int = int(os.environ.get("MANUAL_SEARCH_MAX_TERM_LENGTH", "40"))

    audit_log_enabled: bool = os.environ.get("AUDIT_LOG_ENABLED", "1") not in ("0","false","False")
    metrics_enabled: bool = os.environ.get("METRICS_ENABLED", "1") not in ("0","false","False")
    cors_allow_origins: str = os.environ.get("CORS_ALLOW_ORIGINS", "*")


S = Settings()
