"""
Mail Service - 메일 목록/조회/발송/읽음 처리
"""

import logging
from typing import Any, Callable, Dict, List

import aiohttp

from core.graph_api import GraphApiError, build_query_params
from core.graph_format import format_email_addresses, simplify_recipient, simplify_recipients
from core.protocols import GraphClientProtocol

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 25
MAX_LIMIT = 1000
LIST_SELECT = [
    "id", "subject", "from", "receivedDateTime", "isRead",
    "hasAttachments", "importance", "bodyPreview", "parentFolderId",
]
READ_SELECT = LIST_SELECT + ["toRecipients", "ccRecipients", "bccRecipients", "body", "sentDateTime", "webLink"]

RemoteErrors = (GraphApiError, aiohttp.ClientError)


def _split_ids(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return [v for v in value if v]


def format_message_summary(message: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": message.get("id"),
        "subject": message.get("subject") or "(No Subject)",
        "from": simplify_recipient(message["from"]) if message.get("from") else None,
        "receivedDateTime": message.get("receivedDateTime"),
        "isRead": message.get("isRead"),
        "hasAttachments": message.get("hasAttachments"),
        "importance": message.get("importance"),
        "preview": message.get("bodyPreview"),
    }


class MailService:
    """메일 서비스"""

    def __init__(self, graph_client_factory: Callable[[str], GraphClientProtocol]):
        self.graph_client_factory = graph_client_factory

    def _client(self, params: Dict[str, Any]):
        user_id = params.get("userId") or "default"
        return user_id, self.graph_client_factory(user_id)

    async def list_emails(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        메일 목록 조회

        Graph는 $search와 $orderby를 함께 쓸 수 없으므로 search가 있으면 정렬을 생략합니다.
        """
        user_id, client = self._client(params)
        folder_id = params.get("folderId")
        endpoint = f"/me/mailFolders/{folder_id}/messages" if folder_id else "/me/messages"

        limit = min(params.get("limit") or DEFAULT_LIMIT, MAX_LIMIT)
        filters = [f for f in (params.get("filter"), "isRead eq false" if params.get("unreadOnly") else None) if f]
        search = params.get("search")

        query = build_query_params(
            top=limit,
            select=LIST_SELECT,
            filter_expr=" and ".join(f"({f})" if len(filters) > 1 else f for f in filters) or None,
            order_by=None if search else (params.get("orderBy") or "receivedDateTime desc"),
            search=search,
        )

        try:
            logger.info(f"Listing emails in {folder_id or 'all folders'} for user {user_id}")
            response = await client.get(endpoint, query)
        except RemoteErrors as e:
            logger.error(f"Error listing emails: {e}")
            return {"status": "error", "message": f"Failed to list emails: {e}"}

        emails = [format_message_summary(m) for m in response.get("value", [])]
        return {
            "status": "success",
            "count": len(emails),
            "folderId": folder_id,
            "hasMore": bool(response.get("@odata.nextLink")),
            "emails": emails,
        }

    async def read_email(self, params: Dict[str, Any]) -> Dict[str, Any]:
        email_id = params.get("emailId")
        if not email_id:
            return {"status": "error", "message": "Email ID is required"}

        user_id, client = self._client(params)
        try:
            logger.info(f"Reading email {email_id} for user {user_id}")
            message = await client.get(f"/me/messages/{email_id}", build_query_params(select=READ_SELECT))
        except RemoteErrors as e:
            logger.error(f"Error reading email: {e}")
            return {"status": "error", "message": f"Failed to read email: {e}"}

        email = format_message_summary(message)
        body = message.get("body") or {}
        email.update({
            "to": simplify_recipients(message.get("toRecipients")),
            "cc": simplify_recipients(message.get("ccRecipients")),
            "bcc": simplify_recipients(message.get("bccRecipients")),
            "sentDateTime": message.get("sentDateTime"),
            "bodyType": body.get("contentType"),
            "body": body.get("content"),
            "webLink": message.get("webLink"),
        })
        return {"status": "success", "email": email}

    async def send_email(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """메일 발송 (/me/sendMail)"""
        to_recipients = format_email_addresses(params.get("to"))
        if not to_recipients:
            return {"status": "error", "message": "At least one recipient is required"}
        if not params.get("subject"):
            return {"status": "error", "message": "Email subject is required"}

        user_id, client = self._client(params)
        message = {
            "subject": params["subject"],
            "body": {
                "contentType": params.get("bodyType") or "HTML",
                "content": params.get("body") or "",
            },
            "toRecipients": to_recipients,
            "importance": params.get("importance") or "normal",
        }
        for key, field in (("cc", "ccRecipients"), ("bcc", "bccRecipients")):
            recipients = format_email_addresses(params.get(key))
            if recipients:
                message[field] = recipients

        save_to_sent = params.get("saveToSentItems")
        try:
            logger.info(f"Sending email \"{params['subject']}\" to {len(to_recipients)} recipient(s) for user {user_id}")
            await client.post("/me/sendMail", {
                "message": message,
                "saveToSentItems": True if save_to_sent is None else save_to_sent,
            })
        except RemoteErrors as e:
            logger.error(f"Error sending email: {e}")
            return {"status": "error", "message": f"Failed to send email: {e}"}

        return {
            "status": "success",
            "message": "Email sent successfully",
            "recipients": [r["emailAddress"]["address"] for r in to_recipients],
        }

    async def mark_as_read(self, params: Dict[str, Any]) -> Dict[str, Any]:
        email_ids = _split_ids(params.get("emailIds"))
        if not email_ids:
            return {"status": "error", "message": "At least one email ID is required"}

        is_read = params.get("isRead")
        is_read = True if is_read is None else is_read
        user_id, client = self._client(params)
        logger.info(f"Marking {len(email_ids)} emails as {'read' if is_read else 'unread'} for user {user_id}")

        results = {"success": [], "failed": []}
        for email_id in email_ids:
            try:
                await client.patch(f"/me/messages/{email_id}", {"isRead": is_read})
                results["success"].append(email_id)
            except RemoteErrors as e:
                logger.error(f"Error updating email {email_id}: {e}")
                results["failed"].append({"id": email_id, "error": str(e)})

        return {
            "status": "success" if not results["failed"] else "partial",
            "message": f"Updated {len(results['success'])} of {len(email_ids)} emails",
            "isRead": is_read,
            "results": results,
        }
