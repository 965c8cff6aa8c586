"""
End-to-end check against a running phone bridge server.

1. Receiver (plugin) subscribes over HTTP, sender (phone) over HTTPS
2. Sender posts an offer once peer-joined arrives, receiver answers
3. Both listeners answer a plain GET, and an image upload succeeds

Usage:
    python scripts/verify_signaling.py
    HTTPS_URL=https://192.168.1.20:8083 python scripts/verify_signaling.py
"""
import asyncio
import json
import logging
import os
import sys
import uuid

import httpx

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

HTTPS_URL = os.getenv("HTTPS_URL", "https://localhost:8083")
HTTP_URL = os.getenv("HTTP_URL", "http://localhost:8084")
SESSION_ID = f"test-session-{uuid.uuid4().hex[:8]}"

# 1x1 pixel PNG
PIXEL_PNG = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAAAAAA6fptVAAAACklEQVR4nGNiAAAABgDNjd8qAAAAAElFTkSuQmCC"


async def send_signal(client, base_url, role, message):
    resp = await client.post(
        f"{base_url}/signal",
        params={"id": SESSION_ID, "role": role},
        json=message,
    )
    if resp.status_code != 200:
        logger.error(f"[{role}] Signal failed: {resp.status_code} {resp.text}")
    return resp.status_code == 200


async def listen(client, base_url, role, on_message):
    async with client.stream(
        "GET", f"{base_url}/events", params={"id": SESSION_ID, "role": role}, timeout=None
    ) as resp:
        logger.info(f"[{role}] Connected: {resp.status_code}")
        async for line in resp.aiter_lines():
            if not line.startswith("data: "):
                continue
            msg = json.loads(line[len("data: "):])
            logger.info(f"[{role}] Received: {msg}")
            if await on_message(msg):
                return


async def run_handshake(client) -> bool:
    done = asyncio.Event()

    async def receiver(msg):
        if msg.get("type") == "offer":
            logger.info("[receiver] Got offer! Sending answer...")
            await send_signal(client, HTTP_URL, "receiver", {"type": "answer", "sdp": "mock-sdp-answer"})
        return done.is_set()

    async def sender(msg):
        if msg.get("type") == "peer-joined":
            logger.info("[sender] Peer joined! Sending offer...")
            await send_signal(client, HTTPS_URL, "sender", {"type": "offer", "sdp": "mock-sdp-offer"})
        if msg.get("type") == "answer":
            logger.info("[sender] Got answer! SUCCESS.")
            done.set()
            return True
        return False

    receiver_task = asyncio.create_task(listen(client, HTTP_URL, "receiver", receiver))
    await asyncio.sleep(1)
    sender_task = asyncio.create_task(listen(client, HTTPS_URL, "sender", sender))

    try:
        async with asyncio.timeout(10):
            await done.wait()
    except TimeoutError:
        logger.error("❌ Handshake timed out")
    finally:
        receiver_task.cancel()
        sender_task.cancel()
        await asyncio.gather(receiver_task, sender_task, return_exceptions=True)
    return done.is_set()


async def check_ports(client) -> bool:
    ok = True
    for name, url in (("Phone", HTTPS_URL), ("Plugin", HTTP_URL)):
        try:
            resp = await client.get(f"{url}/health")
        except httpx.HTTPError as e:
            logger.error(f"❌ {name} port failed: {e}")
            ok = False
            continue
        if resp.status_code == 200:
            logger.info(f"✅ {name} port OK ({url})")
        else:
            logger.error(f"❌ {name} port failed: {resp.status_code}")
            ok = False
    return ok


async def check_upload(client) -> bool:
    resp = await client.post(f"{HTTP_URL}/save-image", json={
        "filename": "test-image.png",
        "type": "image/png",
        "data": PIXEL_PNG,
    })
    logger.info(f"[Upload] {resp.status_code} {resp.text}")
    if resp.status_code == 200:
        logger.info("✅ Image upload OK")
        return True
    logger.error("❌ Image upload failed")
    return False


async def main() -> int:
    logger.info(f"Testing signaling on {HTTPS_URL} / {HTTP_URL} with session {SESSION_ID}")
    # The server uses a self-signed certificate
    async with httpx.AsyncClient(verify=False) as client:
        ports_ok = await check_ports(client)
        handshake_ok = await run_handshake(client)
        upload_ok = await check_upload(client)
    return 0 if ports_ok and handshake_ok and upload_ok else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
