"""
Gemini Integration Service
Handles communication with Google Gemini API
"""
import os
import re
import json
from typing import List, Dict, Any, Optional, Union
import google.generativeai as genai
from google.generativeai.types import HarmCategory, HarmBlockThreshold
from dotenv import load_dotenv
import logging

load_dotenv()

logger = logging.getLogger(__name__)

JSONResult = Union[Dict[str, Any], List[Any]]


class AIResponseError(Exception):
    """The model answered, but not with usable JSON."""


def extract_json(text: str) -> JSONResult:
    """
    Extract a JSON object or array from raw model text.

    Args:
        text: Model output, possibly wrapped in markdown fences or prose

    Returns:
        Parsed JSON value

    Raises:
        AIResponseError: If no parseable JSON is found
    """
    text = (text or "").strip()
    if not text:
        raise AIResponseError("Empty response from Gemini")

    # Attempt direct parse first
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"Direct JSON parse failed: {str(e)}")

    fenced = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
    if fenced:
        try:
            return json.loads(fenced.group(1))
        except json.JSONDecodeError:
            pass

    # Take the first object or array that parses, ignoring prose around it
    decoder = json.JSONDecoder()
    last_error = None
    for start in re.finditer(r"[\{\[]", text):
        try:
            value, _ = decoder.raw_decode(text, start.start())
            return value
        except json.JSONDecodeError as e:
            last_error = e

    if last_error is None:
        raise AIResponseError("Gemini response did not contain JSON")
    raise AIResponseError(f"Gemini response contained malformed JSON: {str(last_error)}") from last_error


class GeminiService:
    """Service for interacting with the Google Gemini API"""

    def __init__(self):
        api_key = os.getenv("GEMINI_API_KEY")
        if not api_key:
            raise ValueError("GEMINI_API_KEY environment variable is required")

        genai.configure(api_key=api_key)

        self.model_name = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

        # Safety settings
        self.safety_settings = {
            HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
            HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
            HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_NONE,
            HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_NONE,
        }

        try:
            self.model = genai.GenerativeModel(
                model_name=self.model_name,
                safety_settings=self.safety_settings
            )
            logger.info(f"Initialized Gemini model: {self.model_name}")
        except Exception as e:
            logger.error(f"Failed to initialize Gemini model: {e}")
            raise

    def format_messages_for_gemini(self, messages: List[Dict[str, str]]) -> List[Dict[str, Any]]:
        """
        Format messages for Gemini API.
        Gemini uses 'user' and 'model' roles instead of 'user' and 'assistant'.
        """
        formatted = []
        for msg in messages:
            role = msg.get('role', 'user')
            content = msg.get('content', '')

            if role == 'assistant':
                formatted.append({'role': 'model', 'parts': [content]})
            else:
                formatted.append({'role': 'user', 'parts': [content]})

        return formatted

    async def generate_response(
        self,
        system_instruction: Optional[str],
        messages: List[Dict[str, str]],
        temperature: float = 0.7,
        max_output_tokens: Optional[int] = None,
        response_mime_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Generate response from Gemini.

        Args:
            system_instruction: System prompt/instructions
            messages: Conversation history, last message is the user's turn
            temperature: Sampling temperature (0.0-1.0)
            max_output_tokens: Maximum tokens in response
            response_mime_type: e.g. "application/json" to force JSON output

        Returns:
            Dictionary with 'content', 'finish_reason', 'usage_metadata'
        """
        try:
            formatted_messages = self.format_messages_for_gemini(messages)

            generation_config = {
                "temperature": temperature,
            }
            if max_output_tokens:
                generation_config["max_output_tokens"] = max_output_tokens
            if response_mime_type:
                generation_config["response_mime_type"] = response_mime_type

            # The SDK only accepts a system instruction on the model itself
            model_with_sys = genai.GenerativeModel(
                model_name=self.model_name,
                safety_settings=self.safety_settings,
                system_instruction=system_instruction
            )
            chat = model_with_sys.start_chat(
                history=formatted_messages[:-1] if len(formatted_messages) > 1 else []
            )

            last_message = formatted_messages[-1] if formatted_messages else {'role': 'user', 'parts': ['']}
            user_content = last_message.get('parts', [''])[0]

            response = chat.send_message(
                user_content,
                generation_config=generation_config
            )

            content = response.text

            # SDK field names vary by version
            usage_payload = None
            usage = getattr(response, "usage_metadata", None)
            if usage is not None:
                usage_payload = {}
                if hasattr(usage, "prompt_token_count"):
                    usage_payload["prompt_tokens"] = usage.prompt_token_count
                if hasattr(usage, "candidates_token_count"):
                    usage_payload["candidates_tokens"] = usage.candidates_token_count
                if hasattr(usage, "total_token_count"):
                    usage_payload["total_tokens"] = usage.total_token_count

            return {
                "content": content,
                "finish_reason": response.candidates[0].finish_reason if response.candidates else "STOP",
                "usage_metadata": usage_payload,
            }

        except Exception as e:
            logger.error(f"Error generating Gemini response: {e}")
            raise Exception(f"Failed to generate response: {str(e)}")

    async def generate_json(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.4,
    ) -> JSONResult:
        """
        Send a single prompt and return the model's answer parsed as JSON.

        Args:
            prompt: Full prompt, including the expected response shape
            system_instruction: Optional system prompt
            temperature: Sampling temperature

        Returns:
            Parsed JSON object or array, unmodified

        Raises:
            AIResponseError: If the answer is not JSON
        """
        ai_response = await self.generate_response(
            system_instruction=system_instruction,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            response_mime_type="application/json",
        )
        logger.info(f"Gemini token usage: {ai_response.get('usage_metadata')}")
        return extract_json(ai_response.get("content", ""))


# Global instance (singleton pattern)
_gemini_service_instance = None

def get_gemini_service() -> GeminiService:
    """
    Get or create the global GeminiService instance.

    Returns:
        Shared GeminiService instance
    """
    global _gemini_service_instance
    if _gemini_service_instance is None:
        _gemini_service_instance = GeminiService()
    return _gemini_service_instance
