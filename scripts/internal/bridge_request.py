import datetime
import urllib.request
import urllib.error
import json
import typing
import os
import http.client
import dotenv

from app.auth.signature import generate_signature

dotenv.load_dotenv()

SECRET_KEY = os.getenv("SECRET_KEY")
LISTENER_PORT = os.getenv("LISTENER_PORT")
LISTENER_HOST = os.getenv("LISTENER_HOST") or "localhost"


def call_tool(tool: str, arguments: dict[str, typing.Any]) -> typing.Any | None:
    if SECRET_KEY == None:
        raise Exception("SECRET_KEY not provided in .env file")

    if LISTENER_PORT == None:
        raise Exception("LISTENER_PORT not provided in .env file")

    url = f"http://{LISTENER_HOST}:{LISTENER_PORT}/api/v1/tools?tool={tool}"

    timestamp = str(datetime.datetime.now().timestamp())

    req = urllib.request.Request(
        url, data=json.dumps(arguments).encode("utf-8"), method="POST"
    )
    req.add_header("Content-Type", "application/json")
    req.add_header("timestamp", timestamp)
    req.add_header("sign", generate_signature(timestamp, SECRET_KEY))

    try:
        response: http.client.HTTPResponse = urllib.request.urlopen(req, timeout=120)
    except urllib.error.HTTPError as e:
        print(f"Server Error: {e.code}")
        print("Response Body:", e.read().decode("utf-8"))
        return None

    data = json.loads(response.read())
    response.close()

    return data
