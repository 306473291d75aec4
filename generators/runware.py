import os
import uuid
import logging
import requests
from dotenv import load_dotenv

from errors import UpstreamError

load_dotenv()

def get_api_key():
    return os.getenv("RUNWARE_API_KEY") or os.getenv("VITE_RUNWARE_API_KEY")

def build_task(prompt, rcfg):
    return [{
        "taskType": "imageInference",
        "taskUUID": str(uuid.uuid4()),
        "includeCost": True,
        "model": rcfg.get("model", "civitai:4384@128713"),
        "positivePrompt": prompt,
        "width": int(rcfg.get("width", 512)),
        "height": int(rcfg.get("height", 512)),
        "numberResults": int(rcfg.get("number_results", 1)),
    }]

def runware_generate_image(prompt: str, rcfg: dict, api_key: str, verbose=False) -> str:
    """
    Run one imageInference task and return the URL of the first image.
    Raises UpstreamError on transport failure, non-2xx or an unusable body.
    """
    url = rcfg.get("api_url", "https://api.runware.ai/v1/tasks")
    headers = {"Content-Type": "application/json", "Authorization": f"Bearer {api_key}"}
    body = build_task(prompt, rcfg)
    if verbose:
        logging.info("Runware request: %s", body)
    try:
        resp = requests.post(url, headers=headers, json=body, timeout=rcfg.get("timeout", 120))
    except requests.RequestException as e:
        raise UpstreamError("Runware API request failed", details=str(e)) from e
    if not resp.ok:
        raise UpstreamError("Runware API request failed", details=resp.text)
    try:
        data = resp.json()
    except ValueError as e:
        raise UpstreamError("Runware API returned invalid JSON", details=resp.text) from e
    if verbose:
        logging.info("Runware response: %s", data)
    results = data.get("data") if isinstance(data, dict) else None
    image_url = results[0].get("imageURL") if isinstance(results, list) and results and isinstance(results[0], dict) else None
    if not image_url:
        raise UpstreamError("No imageURL in response", details=data)
    return image_url
