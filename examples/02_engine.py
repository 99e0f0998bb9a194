"""
Callback-driven uploads with UploadEngine
"""
import asyncio
import os
from driveuploader import APIConfig, HttpUploadService, UploadEngine, setup_logging

PARENT = "https://docs.example.com/feeds/upload/create-session/default/private/full"


async def main():
    setup_logging()
    config = APIConfig(auth_token=os.environ["DRIVEUP_TOKEN"])
    
    async with HttpUploadService(config) as service:
        engine = UploadEngine(service)
        
        def on_ready(session_id):
            print(f"Upload {session_id}: session open")
        
        def on_done(result):
            print(f"Upload {result.session_id}: {result.error.value}")
        
        # Several uploads share one engine, each in its own session
        for name in ("a.txt", "b.txt", "c.txt"):
            size = os.path.getsize(name)
            engine.upload_new_file(
                PARENT,
                f"drive/{name}",
                name,
                name,
                "text/plain",
                size,
                size,
                on_done,
                ready_callback=on_ready
            )
        
        print(f"Active: {engine.active_session_ids}")
        
        # Cancel the last one; its callback fires with CANCELLED right away
        engine.cancel(engine.active_session_ids[-1])
        
        await engine.wait_idle()


if __name__ == "__main__":
    asyncio.run(main())
