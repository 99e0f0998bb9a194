"""
Upload files with DriveClient
"""
import asyncio
import os
from driveuploader import DriveClient, UploadFailedError

PARENT = "https://docs.example.com/feeds/upload/create-session/default/private/full"
DOCUMENT = "https://docs.example.com/feeds/upload/create-session/default/private/full/file%3Aabc"


async def main():
    async with DriveClient(auth_token=os.environ["DRIVEUP_TOKEN"]) as drive:
        
        # New document, titled after the file
        result = await drive.upload("report.pdf", PARENT)
        print(f"Created: {result.entry.id}")
        
        # New document with a custom title
        result = await drive.upload("photo.jpg", PARENT, title="Vacation 2024")
        print(f"Created as: {result.entry.title}")
        
        # Overwrite an existing document
        result = await drive.upload("report.pdf", DOCUMENT, existing=True)
        print(f"Updated: {result.entry.id}")
        
        # Upload with progress callback
        def on_progress(session_id, progress):
            print(f"Progress: {progress.percentage:.1f}%")
        
        result = await drive.upload("large_file.zip", PARENT, progress_callback=on_progress)
        print(f"Uploaded: {result.remote_path}")
        
        # Failures raise with the error kind attached
        try:
            await drive.upload("notes.txt", PARENT + "/nowhere")
        except UploadFailedError as e:
            print(f"Failed: {e.kind.value}")


if __name__ == "__main__":
    asyncio.run(main())
