"""
AI illustration generation for homework questions: prompt synthesis, image
synthesis and upload to blob storage.
"""
import base64
import logging
import time
from typing import Callable, Dict, List, Optional, Sequence

from core.ai_gateway import AIGatewayClient, ai_gateway
from core.blob_storage import BlobStorageClient, BlobStorageError, blob_storage
from core.config import PipelineConfig, default_config
from core.transaction import retry_on_transient_error
from models.homework_models import (
    IllustrationRequest,
    IllustrationResult,
    QuestionClassification,
)
from services.illustration.decision_engine import (
    generate_targeted_prompt_prefix,
    should_generate_image,
)

logger = logging.getLogger(__name__)


class IllustrationGenerator:
    """Generates and stores educational diagrams, one question at a time."""

    def __init__(
        self,
        client: Optional[AIGatewayClient] = None,
        storage: Optional[BlobStorageClient] = None,
        config: PipelineConfig = default_config,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client or ai_gateway
        self.storage = storage or blob_storage
        self.config = config
        self.sleep = sleep

        from core.prompt_manager import prompt_manager
        self.system_prompt = prompt_manager.get_prompt("illustration_prompt")

    def generate_illustration(
        self,
        question_text: str,
        subject: str,
        user_id: str,
        classification: Optional[QuestionClassification] = None,
    ) -> IllustrationResult:
        """
        Generate an illustration and store it.

        Args:
            question_text: The question text (including context for sub-questions)
            subject: Detected subject (e.g., "Physics 1", "Calculus")
            user_id: Owner of the stored file
            classification: Optional classification for a targeted prompt

        Returns:
            IllustrationResult; failures are returned, never raised
        """
        category = classification.question_category.value if classification else "unknown"
        logger.info(f"Generating illustration for subject: {subject}, category: {category}")

        prefix = ""
        if classification:
            prefix = generate_targeted_prompt_prefix(
                classification.question_category,
                classification.visualization_reason,
            )

        try:
            # Stage 1: turn the question into an image prompt
            if prefix:
                instruction = (
                    f"Generate an image prompt for this {subject} question. Focus on: {prefix}"
                    f"\n\nQuestion:\n{question_text}"
                )
            else:
                instruction = f"Generate an image prompt for this {subject} question:\n\n{question_text}"

            image_prompt = self.client.generate_text(
                model=self.config.illustration_prompt_model,
                system=self.system_prompt,
                prompt=instruction,
                temperature=self.config.illustration_prompt_temperature,
                max_tokens=self.config.illustration_prompt_max_tokens,
            ).strip()
            logger.debug(f"Generated image prompt: {image_prompt[:100]}...")

            # Stage 2: generate the image
            images = self.client.generate_image(
                model=self.config.image_generation_model,
                prompt=f"Generate an educational physics/math diagram: {image_prompt}",
                temperature=self.config.image_generation_temperature,
            )
            if not images or not images[0].base64:
                return IllustrationResult.failed("No image generated")

            image = images[0]
            image_bytes = base64.b64decode(image.base64)

            # Stage 3: store with a fresh id
            file_id = self.storage.new_file_id()
            image_url = self._upload(file_id, image_bytes, image.media_type, user_id)

            logger.info(f"Generated and stored illustration: {file_id}")
            return IllustrationResult.succeeded(image_url=image_url, file_id=file_id)

        except Exception as e:
            logger.error(f"Illustration generation failed: {e}")
            return IllustrationResult.failed(str(e) or "Illustration generation failed")

    @retry_on_transient_error(max_retries=3, base_delay=1.0, retry_on=(BlobStorageError,))
    def _upload(self, file_id: str, data: bytes, media_type: str, user_id: str) -> str:
        extension = media_type.split("/")[-1] if "/" in media_type else "png"
        return self.storage.put(
            file_id,
            data,
            filename=f"illustration-{file_id}.{extension}",
            media_type=media_type,
            # Publicly readable, deletable only by the owner
            permissions=['read("any")', f'delete("user:{user_id}")'],
        )

    @staticmethod
    def select_for_illustration(requests: Sequence[IllustrationRequest]) -> List[IllustrationRequest]:
        """
        Questions worth illustrating.

        Sub-questions share their parent's illustration. Without a
        classification every main question is included.
        """
        selected = []
        for request in requests:
            if request.is_sub_question:
                continue
            if request.classification is None or should_generate_image(
                request.classification, request.question_text
            ):
                selected.append(request)
        return selected

    def generate_batch_illustrations(
        self,
        requests: Sequence[IllustrationRequest],
        user_id: str,
    ) -> Dict[str, IllustrationResult]:
        """
        Generate illustrations for the questions that need them.

        Runs strictly one at a time with a fixed delay between generations;
        one failure is recorded for that question and the rest continue.
        Questions not selected are absent from the result.
        """
        results: Dict[str, IllustrationResult] = {}
        selected = self.select_for_illustration(requests)

        logger.info(f"Generating {len(selected)}/{len(requests)} illustrations (smart filtering)")

        for position, request in enumerate(selected):
            if position > 0:
                self.sleep(self.config.illustration_delay_seconds)

            try:
                results[request.question_id] = self.generate_illustration(
                    request.question_text,
                    request.subject,
                    user_id,
                    request.classification,
                )
            except Exception as e:
                logger.error(f"Illustration failed for question {request.question_id}: {e}")
                results[request.question_id] = IllustrationResult.failed(str(e) or "Unknown error")

        return results

    def delete_illustration(self, file_id: str) -> bool:
        """Best-effort delete; returns False instead of raising."""
        try:
            self.storage.delete(file_id)
            logger.info(f"Deleted illustration: {file_id}")
            return True
        except Exception as e:
            logger.error(f"Failed to delete illustration {file_id}: {e}")
            return False
