"""
Unit tests for the CloudConvert and R2 integrations.

HTTP and S3 calls are mocked; nothing leaves the process.

Run: pytest tests/unit/test_integrations.py -v
"""

from unittest.mock import MagicMock, patch

import pytest
import requests
from botocore.exceptions import ClientError

from exceptions import ConversionError, StorageError
from integrations.cloudconvert import CloudConvertClient, find_task
from integrations.r2_storage import R2Storage, guess_image_type
from tests.factories import png_bytes


def json_response(data: dict) -> MagicMock:
    response = MagicMock()
    response.json.return_value = {"data": data}
    response.raise_for_status.return_value = None
    return response


CREATED_JOB = {
    "id": "job-1",
    "tasks": [
        {
            "name": "import-file",
            "result": {"form": {"url": "https://upload.example.com", "parameters": {"key": "abc"}}},
        },
        {"name": "convert-file"},
        {"name": "export-file"},
    ],
}

FINISHED_JOB = {
    "id": "job-1",
    "status": "finished",
    "tasks": [
        {"name": "export-file", "status": "finished",
         "result": {"files": [{"url": "https://storage.example.com/out.docx"}]}},
    ],
}


@pytest.fixture
def client():
    return CloudConvertClient(
        api_key="test-key",
        base_url="https://api.example.com/v2",
        sync_url="https://sync.example.com/v2",
        timeout=30,
    )


class TestCloudConvertClient:

    def test_convert(self, client):
        download = MagicMock()
        download.content = b"converted"
        download.raise_for_status.return_value = None

        with patch("integrations.cloudconvert.requests.post") as post, \
                patch("integrations.cloudconvert.requests.get") as get:
            post.side_effect = [json_response(CREATED_JOB), MagicMock()]
            get.side_effect = [json_response(FINISHED_JOB), download]

            result = client.convert(b"%PDF-1.4", "pdf", "docx")

        assert result == b"converted"
        job_payload = post.call_args_list[0].kwargs["json"]
        assert job_payload["tasks"]["convert-file"]["input_format"] == "pdf"
        assert job_payload["tasks"]["convert-file"]["output_format"] == "docx"
        assert post.call_args_list[1].args[0] == "https://upload.example.com"
        assert get.call_args_list[0].args[0] == "https://sync.example.com/v2/jobs/job-1"

    def test_failed_job(self, client):
        failed = {
            "id": "job-1",
            "status": "error",
            "tasks": [{"name": "convert-file", "status": "error", "message": "Unsupported file"}],
        }

        with patch("integrations.cloudconvert.requests.post") as post, \
                patch("integrations.cloudconvert.requests.get") as get:
            post.side_effect = [json_response(CREATED_JOB), MagicMock()]
            get.return_value = json_response(failed)

            with pytest.raises(ConversionError) as exc_info:
                client.convert(b"%PDF-1.4", "pdf", "docx")

        assert "Unsupported file" in exc_info.value.message

    def test_network_error(self, client):
        with patch("integrations.cloudconvert.requests.post", side_effect=requests.exceptions.ConnectionError("down")):
            with pytest.raises(ConversionError):
                client.convert(b"x", "docx", "pdf")

    def test_missing_api_key(self, client):
        client.api_key = None

        with patch("integrations.cloudconvert.requests.post") as post:
            with pytest.raises(ConversionError):
                client.convert(b"x", "docx", "pdf")

        post.assert_not_called()

    def test_find_task_missing(self):
        with pytest.raises(ConversionError):
            find_task({"id": "job-1", "tasks": []}, "export-file")


class TestR2Storage:

    @pytest.mark.parametrize("content,expected", [
        (png_bytes(), "image/png"),
        (b"\xff\xd8\xff\xe0rest", "image/jpeg"),
        (b"GIF89a", "image/gif"),
        (b"RIFF\x00\x00\x00\x00WEBPVP8", "image/webp"),
    ])
    def test_guess_image_type(self, content, expected):
        assert guess_image_type(content) == expected

    def test_put(self):
        s3 = MagicMock()
        storage = R2Storage(client=s3, bucket="images", public_url="https://cdn.example.com/")

        url = storage.put(png_bytes())

        kwargs = s3.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "images"
        assert kwargs["ContentType"] == "image/png"
        assert kwargs["Key"].startswith("products/") and kwargs["Key"].endswith(".png")
        assert url == f"https://cdn.example.com/{kwargs['Key']}"

    def test_put_explicit_key(self):
        storage = R2Storage(client=MagicMock(), bucket="images", public_url="https://cdn.example.com")

        assert storage.put(b"data", "image/jpeg", key="a/b.jpg") == "https://cdn.example.com/a/b.jpg"

    def test_upload_failure(self):
        s3 = MagicMock()
        s3.put_object.side_effect = ClientError({"Error": {"Code": "500", "Message": "boom"}}, "PutObject")
        storage = R2Storage(client=s3, bucket="images", public_url="https://cdn.example.com")

        with pytest.raises(StorageError):
            storage.put(png_bytes())
