from __future__ import annotations

HELP_TEXT = """Group Digest Bot

In a group:

/summarize <count> [short|medium|long] [@username]
Summarize the last <count> messages (max {max_count}) and send the summary to you privately.
Examples:
- /summarize 50
- /summarize 120 long
- /summarize 200 short @alice

/ask [count] <question>
Answer a question using the recent discussion.
Examples:
- /ask when is the next meetup?
- /ask 150 what did we decide about the venue?

/tldr [short|medium|long]
Reply to a message (text, voice note, audio or video) to get a summary of just that message.

In a private chat with me:
Forward any message, voice note or video and I will summarize it.

Summaries are delivered privately, so start a conversation with me first.

Privacy: I do not store your messages. I keep only the ids of the latest {capacity} messages per group, \
fetch the content when you ask for a summary and discard it afterwards.
"""


MESSAGES = {
    "usage_summarize": "Usage: /summarize <count> [short|medium|long] [@username]. The cap is {max_count} messages.",
    "usage_ask": "Usage: /ask [count] <question>",
    "usage_tldr": "Reply to a message with /tldr [short|medium|long] to summarize it.",
    "status_summarizing": "Summarizing... I will send the result here.",
    "status_summarizing_one": "Got it - working on a summary of that message...",
    "status_answering": "Looking through the discussion for an answer...",
    "error_start_conversation": "Couldn't send you a message. Please start a conversation with me first.",
    "error_sender_unknown": "Sender is unknown. Check your privacy settings.",
    "error_no_messages": "No messages found.",
    "error_message_missing": "I could not find that message. It may have been deleted.",
    "error_unsupported_content": "I can only summarize text, voice notes, audio and video messages.",
    "error_download_media": "I could not download that media file. Please try again.",
    "error_transcode_media": "I could not extract the audio track from that video.",
    "error_transcribe_media": "I could not transcribe that recording.",
    "error_summary_failed": "Failed to summarize the chat. Please try again later.",
    "error_provider_busy": "The AI service is busy right now and I had to give up on your request. Please try again later.",
}


def msg(key: str, **kwargs: object) -> str:
    template = MESSAGES[key]
    return template.format(**kwargs)


def help_text(max_count: int, capacity: int) -> str:
    return HELP_TEXT.format(max_count=max_count, capacity=capacity)
