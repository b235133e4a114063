"""
Module: storage
Description: Package initialization for data persistence layer.

This package contains the DynamoDB stores used by the delivery pipeline:
- SubscriptionStore: read subscriptions, deactivate them
- DeliveryRecordStore: append delivery records, attach responses
- AuditLogStore: append audit history entries
"""

__all__ = []
