"""AI Advisory Client - Gemini-backed food recognition and diet planning.

Network-bound and fallible. Every failure surfaces as an ``AdvisoryError``
subclass; a missing credential surfaces as ``CredentialMissingError`` so the
rest of the app keeps working without AI features.
"""

import logging

import google.generativeai as genai
from pydantic import ValidationError

from ..core.advice import (
    IMAGE_ANALYSIS_PROMPT,
    build_plan_prompt,
    parse_diet_plan,
    parse_recognized_foods,
)
from ..core.errors import AnalysisError, CredentialMissingError, PlanGenerationError
from ..core.models import DietPlan, RecognizedFood, UserProfile


logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"
SUPPORTED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/heic", "image/heif"}


class AdvisoryClient:
    """Client for the AI advisory service.

    The Gemini model is created lazily on first use.
    """

    def __init__(self, api_key: str | None, model_name: str = DEFAULT_MODEL) -> None:
        """Initialize advisory client.

        Args:
            api_key: Gemini API key (None disables the client)
            model_name: Gemini model to call
        """
        self._api_key = api_key
        self.model_name = model_name
        self._model: genai.GenerativeModel | None = None

    @property
    def available(self) -> bool:
        """Whether a credential is configured."""
        return bool(self._api_key)

    @property
    def model(self) -> genai.GenerativeModel:
        """Lazy initialization of the Gemini model."""
        if not self.available:
            raise CredentialMissingError("AI features are offline (check API configuration)")
        if self._model is None:
            genai.configure(api_key=self._api_key)
            self._model = genai.GenerativeModel(self.model_name)
        return self._model

    def _generate_json(self, contents) -> str:
        response = self.model.generate_content(
            contents,
            generation_config=genai.types.GenerationConfig(
                response_mime_type="application/json",
                temperature=0.4,
            ),
        )
        return response.text or ""

    def analyze_image(self, image_bytes: bytes, mime_type: str) -> list[RecognizedFood]:
        """Recognize food items in an image.

        Args:
            image_bytes: Raw image data
            mime_type: MIME type of the image (e.g., "image/jpeg")

        Returns:
            Recognized items without identifiers; callers assign IDs before
            logging them

        Raises:
            CredentialMissingError: If no API key is configured
            AnalysisError: If the call fails or the response cannot be parsed
        """
        if not self.available:
            raise CredentialMissingError("AI features are offline (check API configuration)")
        if not image_bytes:
            raise AnalysisError("No image data provided")
        if mime_type not in SUPPORTED_IMAGE_TYPES:
            raise AnalysisError(f"Unsupported image type: {mime_type}")

        logger.info("Analyzing food image (%d bytes, %s)", len(image_bytes), mime_type)
        try:
            text = self._generate_json(
                [{"mime_type": mime_type, "data": image_bytes}, IMAGE_ANALYSIS_PROMPT]
            )
            items = parse_recognized_foods(text)
        except ValidationError as e:
            logger.error("Gemini analysis returned invalid items: %s", str(e))
            raise AnalysisError("Problem analyzing food.") from e
        except Exception as e:
            logger.error("Gemini analysis error: %s: %s", type(e).__name__, str(e))
            raise AnalysisError("Problem analyzing food.") from e

        logger.info("Recognized %d food items", len(items))
        return items

    def generate_plan(self, profile: UserProfile) -> DietPlan:
        """Generate a diet plan for a profile.

        Raises:
            CredentialMissingError: If no API key is configured
            PlanGenerationError: If the call fails or the response cannot be parsed
        """
        if not self.available:
            raise CredentialMissingError("AI features are offline (check API configuration)")

        logger.info("Generating diet plan")
        try:
            text = self._generate_json(build_plan_prompt(profile))
            return parse_diet_plan(text)
        except ValidationError as e:
            logger.error("Gemini diet plan returned an invalid plan: %s", str(e))
            raise PlanGenerationError("Could not generate a diet plan. Please try again.") from e
        except Exception as e:
            logger.error("Gemini diet plan error: %s: %s", type(e).__name__, str(e))
            raise PlanGenerationError("Could not generate a diet plan. Please try again.") from e
