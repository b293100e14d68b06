"""Fixed instructions sent to the Gemini models."""

from google.genai import types

PROMPT_SYSTEM_INSTRUCTION = (
    "You are an expert prompt engineer for generative AI image models. Your task is to "
    "analyze a user-provided image and generate three distinct prompts describing its "
    "style, scene, and pose, while ignoring the specific identity of the person. "
    "Respond ONLY with a valid JSON object that matches the provided schema."
)

PROMPT_ANALYSIS_INSTRUCTION = (
    "Analyze the attached image and extract its aesthetic and compositional elements. "
    "Generate three distinct prompts that describe the background, environment, lighting, "
    "color grading, camera angle, and the subject's pose (e.g., 'sitting on a bench', "
    "'leaning against a wall'). The prompts should NOT describe the person's facial "
    "features or identity, but rather the scene and pose. The goal is to use these "
    "prompts to place a different person into this exact style and setting. "
    "Follow the JSON schema precisely."
)

STYLE_TRANSFER_INSTRUCTION = (
    "The first image is the style reference and the second image shows the subject. "
    "Recreate the scene of the first image, keeping its background, environment, lighting, "
    "color grading, camera angle, composition and the pose of the person in it, but place "
    "the person from the second image into it. It is crucial that you preserve the identity "
    "and facial features of the person from the second image exactly. Do not carry over "
    "the background or style of the second image."
)


def build_synthesis_instruction(prompt: str) -> str:
    """Compose the identity-preserving instruction for one prompt."""
    return (
        "Using the provided image as the subject, place the person from this image into a new "
        "scene described by the following prompt. It is crucial that you preserve the identity "
        "and facial features of the person from the source image exactly. However, their "
        "clothing, pose, the background, and the overall artistic style should be completely "
        "replaced by the style described in the prompt. Do not mix the background or style "
        "from the source image. The final image should feature the person from the source "
        "image but reimagined in the new context. "
        f"Prompt: {prompt}"
    )


PROMPT_RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "simple": types.Schema(
            type=types.Type.STRING,
            description="A simple prompt describing style, background and pose.",
        ),
        "detailed": types.Schema(
            type=types.Type.STRING,
            description="A detailed, moody prompt describing style, background and pose.",
        ),
        "technical": types.Schema(
            type=types.Type.STRING,
            description="A technical, photographic prompt describing style, background and pose.",
        ),
    },
    required=["simple", "detailed", "technical"],
)
