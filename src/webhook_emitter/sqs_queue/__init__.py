"""
Package: sqs_queue
Description: SQS message queue operations for delivery jobs.

Provides the async SQS client and the scheduler that re-enqueues a
delivery job after a delay measured in whole minutes.
"""
