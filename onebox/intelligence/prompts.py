"""Prompt templates for classification and reply suggestion."""

from __future__ import annotations

CLASSIFY_TEMPLATE = """You are an email categorization AI. Analyze the following email and categorize it into one of these categories:
- Interested: The sender is interested in your product/service
- Meeting Booked: The email confirms or schedules a meeting
- Not Interested: The sender is not interested
- Spam: The email is spam or promotional
- Out of Office: Auto-reply indicating the person is out of office

Email:
From: {sender}
Subject: {subject}
Body: {body}

Respond with ONLY the category name, nothing else."""

REPLY_TEMPLATE = """You are an intelligent email assistant for "Onebox Email Aggregator".

PRODUCT CONTEXT:
{knowledge_base}

YOUR TASK:
Analyze the email below and write a professional, personalized reply that:
1. Directly addresses the sender's specific questions or points
2. References specific details from their email
3. Provides relevant information about Onebox features if they asked
4. Proposes a meeting if they show interest
5. Keeps a professional yet friendly tone
6. Stays under 120 words

EMAIL TO REPLY TO:
From: {sender}
Subject: {subject}
Category: {category}

Message:
{body}

YOUR PERSONALIZED REPLY:"""


def classification_prompt(*, subject: str, body: str, sender: str, body_chars: int) -> str:
    return CLASSIFY_TEMPLATE.format(subject=subject, body=body[:body_chars], sender=sender)


def reply_prompt(
    *,
    subject: str,
    body: str,
    sender: str,
    category: str | None,
    knowledge_base: str,
    body_chars: int,
) -> str:
    return REPLY_TEMPLATE.format(
        knowledge_base=knowledge_base.strip(),
        subject=subject,
        body=body[:body_chars],
        sender=sender,
        category=category or "Unknown",
    )
