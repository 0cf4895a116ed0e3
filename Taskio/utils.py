import json
import logging
import time

import fitz  # PyMuPDF
from django.conf import settings
from groq import Groq
from rest_framework import status
from rest_framework.response import Response


def extract_pdf_text(attachment):
    """
    Extracts text from an uploaded PDF.

    Args:
        attachment (File): A Django UploadedFile or File object.

    Returns:
        str: The combined text of all pages, or "" when the file cannot be read.
    """
    try:
        attachment.seek(0)
        raw_bytes = attachment.read()
        full_text = ""

        with fitz.open(stream=raw_bytes, filetype="pdf") as doc:
            for page in doc:
                page_text = page.get_text("text")

                if page_text and page_text.strip():
                    full_text += page_text.strip() + "\n\n"

        return full_text

    except Exception as e:
        logging.error(f"[extract_pdf_text] Failed to extract from PDF: {e}")
        return ""


def create_response(success, message, body=None, status_code=status.HTTP_200_OK):
    try:
        response_data = {'success': success, 'message': message}
        if body is not None:
            response_data['body'] = body
        return Response(response_data, status=status_code, headers={"Cache-Control": "no-store"})
    except Exception as e:
        error_message = f"Error creating response: {str(e)}"
        return Response({'success': False, 'message': error_message}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_response(exc):
    """Envelope for an APIException raised by a service function."""
    detail = exc.detail
    body = getattr(exc, "extra", None) or None
    if isinstance(detail, dict):
        message = str(detail.get("detail") or exc.default_detail)
        body = body or detail
    elif isinstance(detail, list):
        message = " ".join(str(d) for d in detail)
    else:
        message = str(detail)
    return create_response(False, message, body, status_code=exc.status_code)


def get_client_ip(request):
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip() or "unknown"
    real_ip = request.META.get("HTTP_X_REAL_IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    return request.META.get("REMOTE_ADDR") or "unknown"


MAX_RETRIES = 3
RETRY_DELAY = 2


def retry_groq_call(fn, *args, **kwargs):
    for attempt in range(MAX_RETRIES):
        try:
            return fn(*args, **kwargs)
        except Exception as e:
            logging.warning(f"Groq call failed (attempt {attempt+1}/{MAX_RETRIES}): {e}")
            if attempt < MAX_RETRIES - 1:
                time.sleep(RETRY_DELAY)
            else:
                raise


def generate_response_with_groq(messages, response_format=None, model=None, max_completion_tokens=None):
    try:
        model = model or settings.GROQ_MODEL
        api_key = settings.GROQ_API_KEY

        if not api_key:
            raise ValueError("API key is missing. Please set the GROQ_API_KEY environment variable.")

        client = Groq(api_key=api_key)

        request_args = {
            "messages": messages,
            "model": model,
        }
        if max_completion_tokens:
            request_args["max_completion_tokens"] = max_completion_tokens
        if response_format and response_format == "json":
            request_args["response_format"] = {"type": "json_object"}

        def groq_completion_request():
            return client.chat.completions.create(**request_args)

        chat_completion = retry_groq_call(groq_completion_request)
        response_content = chat_completion.choices[0].message.content
        if response_format and response_format == "json":
            response_content = json.loads(response_content)
        usage = chat_completion.usage
        return response_content, usage.model_dump()

    except ValueError as ve:
        logging.warning(f"[groq] {ve}")
        return None, None
    except Exception as e:
        logging.exception(f"[groq] An error occurred: {e}")
        return None, None
