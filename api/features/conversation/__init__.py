"""Conversation feature package: entities, repositories, access policy and stores.

Conversations and their append-only messages are owned by a single user.
Every store call takes the acting identity and is gated by ``AccessPolicy``;
records of other users are reported as not found.
"""
