import os

# Keep backend and namespace selection deterministic regardless of the shell
os.environ.pop("KUBEFUNC_K8S_BACKEND", None)
os.environ.pop("KUBEFUNC_NAMESPACE", None)

from tests.fixtures import *  # noqa: E402,F401,F403
