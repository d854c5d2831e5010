"""
QUERIES - Read operations (CQRS)

Queries retrieve data without modifying state. Each query has:
- Query class: Parameters for the read
- Handler class: Executes the read

Subfolders:
- chat/          → get_chat_history
- conversations/ → list_conversations
- user/          → get_user_tier
- health/        → check_database
"""
