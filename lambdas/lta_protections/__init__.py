"""Lifetime allowance protections service.

Accepts client protection applications, converts them to the NPS
(National Insurance and PAYE Service) wire format, submits them and converts
the NPS responses back to client records.

Packages and modules:
    transformers: Pure record transformation engine and the two pipelines
    connectors: HTTP connectors to NPS
    service: Protection service wiring transformers, connector and audit
    audit: Audit events published to EventBridge
    nino: NINO suffix handling
    retry: Retry with backoff for NPS calls
    index: API Gateway Lambda handler
"""
