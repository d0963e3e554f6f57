"""Tests for generation-type classification and message composition."""

from __future__ import annotations

import json
import unittest

from videogen.composer import classify_generation_type, compose
from videogen.models import (
    FileContent,
    GenerationSettings,
    ImageContent,
    MediaDescriptor,
    TextContent,
)


def _media(kind: str, name: str, data_uri: str | None = None) -> MediaDescriptor:
    mime = "image/png" if kind == "image" else "video/mp4"
    return MediaDescriptor(
        id=f"id-{name}",
        kind=kind,
        filename=name,
        mime_type=mime,
        data_uri=f"data:{mime};base64,QUJD" if data_uri is None else data_uri,
        size=3,
    )


class ClassifyTest(unittest.TestCase):

    def test_all_four_types(self) -> None:
        image = _media("image", "a.png")
        video = _media("video", "b.mp4")
        self.assertEqual(classify_generation_type([]), "text-to-video")
        self.assertEqual(classify_generation_type([image]), "image-to-video")
        self.assertEqual(classify_generation_type([video]), "video-to-video")
        self.assertEqual(classify_generation_type([video, image]), "mixed-media-to-video")
        self.assertEqual(classify_generation_type([image, image, video]), "mixed-media-to-video")


class ComposeTest(unittest.TestCase):

    def test_text_only_is_plain_string(self) -> None:
        message = compose("A cat on a skateboard", None)

        self.assertFalse(message.is_multimodal)
        self.assertEqual(message.generation_type, "text-to-video")
        self.assertIn("User Prompt: A cat on a skateboard", message.content)
        self.assertIn("- Duration: 30 seconds", message.content)
        self.assertIn("- Resolution: 1920x1080", message.content)
        self.assertIn("- Style: cinematic", message.content)
        self.assertNotIn("Transformation Strength", message.content)
        self.assertEqual(message.to_dict(), {"role": "user", "content": message.content})

    def test_text_only_uses_instruction(self) -> None:
        message = compose("waves", GenerationSettings(), instruction="Make it moody.")
        self.assertTrue(message.content.startswith("Make it moody."))

    def test_single_image(self) -> None:
        image = _media("image", "cat.png")
        message = compose("animate this", GenerationSettings(), [image])

        self.assertEqual(message.generation_type, "image-to-video")
        self.assertEqual(len(message.content), 2)
        text, item = message.content
        self.assertIsInstance(text, TextContent)
        self.assertIn("Generation Type: image-to-video", text.text)
        self.assertIn("Description: animate this", text.text)
        self.assertIn("Transformation Strength: 0.7", text.text)
        self.assertIn("Motion Level: 127", text.text)
        self.assertIn("visual reference", text.text)
        self.assertEqual(item, ImageContent(url=image.data_uri))
        self.assertEqual(
            message.to_dict()["content"][1],
            {"type": "image_url", "image_url": {"url": image.data_uri}},
        )

    def test_mixed_media_keeps_input_order(self) -> None:
        video = _media("video", "clip.mp4")
        image = _media("image", "cat.png")
        message = compose("", GenerationSettings(strength=0.3, motion_bucket=200), [video, image])

        kinds = [item.type for item in message.content]
        self.assertEqual(kinds, ["text", "file", "image_url"])
        self.assertEqual(message.content[1], FileContent(filename="clip.mp4", file_data=video.data_uri))
        self.assertEqual(
            message.to_dict()["content"][1],
            {"type": "file", "file": {"filename": "clip.mp4", "file_data": video.data_uri}},
        )
        text = message.content[0].text
        self.assertNotIn("Description:", text)
        self.assertIn("Transformation Strength: 0.3", text)
        self.assertIn("Motion Level: 200", text)

    def test_media_without_payload_is_skipped(self) -> None:
        message = compose("x", None, [_media("image", "a.png", data_uri=""), _media("image", "b.png")])
        self.assertEqual(len(message.content), 2)

    def test_identical_inputs_give_identical_output(self) -> None:
        media = [_media("image", "a.png"), _media("video", "b.mp4")]
        settings = GenerationSettings(duration=12, style="anime")

        first = json.dumps(compose("dragons", settings, media).to_dict())
        second = json.dumps(compose("dragons", settings, media).to_dict())
        self.assertEqual(first, second)

    def test_inputs_not_mutated(self) -> None:
        media = [_media("image", "a.png")]
        settings = GenerationSettings()
        compose("x", settings, media)
        self.assertEqual(settings, GenerationSettings())
        self.assertEqual(len(media), 1)
