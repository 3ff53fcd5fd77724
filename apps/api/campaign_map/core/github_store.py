"""
GitHub Contents API backend.

Every document write is a commit on the configured branch. A stale sha
comes back as 409 (or 422 when the sha is missing for an existing file);
both surface as ShaConflictError.
"""
from __future__ import annotations

import base64
import json
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from .config import Settings
from .content_store import CommitInfo, ContentStoreError, ShaConflictError, StoredFile
from .logs import emit

DEFAULT_TIMEOUT_S = 15.0


class GitHubContentStore:
    name = "github"

    def __init__(
        self,
        *,
        owner: str,
        repo: str,
        token: Optional[str],
        branch: str = "main",
        api_url: str = "https://api.github.com",
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not owner or not repo:
            raise ValueError("GitHub backend requires GITHUB_USERNAME and GITHUB_REPO")
        self.owner = owner
        self.repo = repo
        self.branch = branch
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "campaign-map-api",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = httpx.Client(
            base_url=api_url.rstrip("/"),
            headers=headers,
            timeout=DEFAULT_TIMEOUT_S,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "GitHubContentStore":
        return cls(
            owner=settings.github_owner or "",
            repo=settings.github_repo or "",
            token=settings.github_token,
            branch=settings.github_branch,
            api_url=settings.github_api_url,
        )

    def _repo_url(self, suffix: str = "") -> str:
        return f"/repos/{self.owner}/{self.repo}{suffix}"

    def _contents_url(self, path: str) -> str:
        return self._repo_url("/contents/" + quote(path.lstrip("/"), safe="/"))

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise ContentStoreError(f"GitHub request failed: {e}") from e

    @staticmethod
    def _raise_for(resp: httpx.Response, what: str) -> None:
        try:
            detail = resp.json().get("message", "")
        except ValueError:
            detail = resp.text[:200]
        raise ContentStoreError(f"{what} failed ({resp.status_code}): {detail}", status_code=resp.status_code)

    def _blob_text(self, sha: str) -> str:
        resp = self._request("GET", self._repo_url(f"/git/blobs/{sha}"))
        if resp.status_code != 200:
            self._raise_for(resp, "blob read")
        return base64.b64decode(resp.json().get("content") or "").decode("utf-8")

    def read_json(self, path: str) -> Optional[StoredFile]:
        resp = self._request("GET", self._contents_url(path), params={"ref": self.branch})
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            self._raise_for(resp, f"read {path}")

        body = resp.json()
        if isinstance(body, list):
            raise ContentStoreError(f"{path} is a directory, expected a file")

        sha = str(body.get("sha") or "")
        if body.get("encoding") == "base64" and body.get("content"):
            text = base64.b64decode(body["content"]).decode("utf-8")
        else:
            # files above 1MB are not inlined by the contents endpoint
            text = self._blob_text(sha)
        return StoredFile(path=path, sha=sha, data=json.loads(text) if text.strip() else None)

    def write_json(
        self,
        path: str,
        data: Any,
        *,
        message: str,
        sha: Optional[str],
        author: Optional[str] = None,
    ) -> str:
        content = json.dumps(data, ensure_ascii=False, indent=2).encode("utf-8")
        payload: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self.branch,
        }
        if sha:
            payload["sha"] = sha

        resp = self._request("PUT", self._contents_url(path), json=payload)
        if resp.status_code in (409, 422):
            raise ShaConflictError(path, expected=sha, actual=None)
        if resp.status_code not in (200, 201):
            self._raise_for(resp, f"write {path}")

        commit_sha = str(((resp.json() or {}).get("commit") or {}).get("sha") or "")
        emit("info", "content.commit", message, None, __name__, path=path, commit_sha=commit_sha, backend=self.name)
        return commit_sha

    def list_commits(
        self,
        *,
        path: Optional[str] = None,
        since: Optional[str] = None,
        limit: int = 50,
    ) -> List[CommitInfo]:
        limit = max(int(limit), 1)
        params: Optional[Dict[str, Any]] = {"sha": self.branch, "per_page": min(limit, 100)}
        if path:
            params["path"] = path
        if since:
            params["since"] = since

        # GitHub caps per_page at 100; the rest comes through Link rel="next"
        out: List[CommitInfo] = []
        url: Optional[str] = self._repo_url("/commits")
        while url and len(out) < limit:
            resp = self._request("GET", url, params=params)
            if resp.status_code != 200:
                self._raise_for(resp, "list commits")
            for c in resp.json() or []:
                commit = c.get("commit") or {}
                author = commit.get("author") or {}
                out.append(
                    CommitInfo(
                        sha=str(c.get("sha") or ""),
                        message=str(commit.get("message") or ""),
                        author=str(author.get("name") or ""),
                        date=str(author.get("date") or ""),
                        path=path,
                    )
                )
            url = resp.links.get("next", {}).get("url")
            params = None
        return out[:limit]

    def ping(self) -> Dict[str, Any]:
        resp = self._request("GET", self._repo_url())
        if resp.status_code != 200:
            self._raise_for(resp, "repository lookup")
        return {"repo": resp.json().get("full_name")}

    def describe(self) -> Dict[str, Any]:
        return {"backend": self.name, "repo": f"{self.owner}/{self.repo}", "branch": self.branch}
