"""
Per-guardian scoped view over VideoStore.
Curries guardian_id into every whitelist operation.
"""


class GuardianStore:
    """Wraps VideoStore with a fixed guardian_id."""

    def __init__(self, store, guardian_id: str):
        self._store = store
        self.guardian_id = guardian_id

    def add_video(self, video_id, title, **kw):
        return self._store.add_video(video_id, title, guardian_id=self.guardian_id, **kw)

    def get_video(self, record_id):
        return self._store.get_video(record_id, guardian_id=self.guardian_id)

    def get_video_by_youtube_id(self, video_id):
        return self._store.get_video_by_youtube_id(video_id, guardian_id=self.guardian_id)

    def list_videos(self):
        return self._store.list_videos(guardian_id=self.guardian_id)

    def count_videos(self):
        return self._store.count_videos(guardian_id=self.guardian_id)

    def delete_video(self, record_id):
        return self._store.delete_video(record_id, guardian_id=self.guardian_id)

    def record_watch(self, record_id):
        return self._store.record_watch(record_id, guardian_id=self.guardian_id)
