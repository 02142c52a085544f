from __future__ import annotations
import subprocess
from typing import Dict, List, Tuple

from .errors import DeviceError
from .models import Device

DEFAULT_TIMEOUT = 30

SCOPE_FLAGS = {
    "all": [],
    "system": ["-s"],
    "third-party": ["-3"],
}

def run_capture(cmd: List[str], timeout: int = DEFAULT_TIMEOUT) -> Tuple[int, str]:
    try:
        p = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True, errors="replace", timeout=timeout)
        return p.returncode, p.stdout
    except FileNotFoundError:
        return 127, f"Command not found: {cmd[0]}"
    except subprocess.TimeoutExpired:
        return 124, f"Command timed out after {timeout}s: {' '.join(cmd)}"

def parse_package_list(out: str) -> List[str]:
    xs: List[str] = []
    for ln in out.splitlines():
        ln = ln.strip()
        if ln.startswith("package:"):
            xs.append(ln[len("package:"):])
    return xs

def parse_devices(out: str) -> List[Tuple[str, str]]:
    """
    (serial, state) pairs from `adb devices`, header and daemon chatter skipped.
    """
    devs: List[Tuple[str, str]] = []
    for ln in out.splitlines():
        ln = ln.strip()
        if not ln or ln.startswith("List of devices") or ln.startswith("*"):
            continue
        parts = ln.split()
        if len(parts) >= 2:
            devs.append((parts[0], parts[1]))
    return devs

def parse_package_info(out: str) -> Dict[str, str]:
    info: Dict[str, str] = {}
    for ln in out.splitlines():
        ln = ln.strip()
        for key in ("versionName", "versionCode"):
            marker = key + "="
            if marker in ln and key not in info:
                info[key] = ln.split(marker, 1)[1].split(" ")[0]
    return info

class AdbClient:
    def __init__(self, adb_path: str = "adb", timeout: int = DEFAULT_TIMEOUT):
        self.adb_path = adb_path or "adb"
        self.timeout = timeout

    def _run(self, *args: str) -> Tuple[int, str]:
        return run_capture([self.adb_path, *args], timeout=self.timeout)

    def _shell(self, *args: str) -> Tuple[int, str]:
        return self._run("shell", *args)

    def is_available(self) -> bool:
        rc, _ = self._run("version")
        return rc == 0

    def get_device(self, user_id: str = "0") -> Device:
        rc, out = self._run("devices")
        if rc != 0:
            raise DeviceError(f"failed to check devices: {out.strip()}")
        ready = [serial for serial, state in parse_devices(out) if state == "device"]
        if not ready:
            raise DeviceError("no device found or device not authorized")

        def prop(name: str) -> str:
            rc, out = self._shell("getprop", name)
            return out.strip() if rc == 0 else ""

        return Device(
            id=ready[0],
            manufacturer=prop("ro.product.manufacturer"),
            model=prop("ro.product.model"),
            android_version=prop("ro.build.version.release"),
            user_id=user_id,
        )

    def list_packages(self, scope: str = "all") -> List[str]:
        if scope not in SCOPE_FLAGS:
            raise ValueError(f"unknown package scope: {scope}")
        rc, out = self._shell("pm", "list", "packages", *SCOPE_FLAGS[scope])
        if rc != 0:
            raise DeviceError(f"failed to list {scope} packages: {out.strip()}")
        return parse_package_list(out)

    def is_installed(self, name: str) -> bool:
        rc, out = self._shell("pm", "list", "packages", name)
        if rc != 0:
            raise DeviceError(f"failed to check package {name}: {out.strip()}")
        # pm filters by substring, so com.foo also lists com.foo.bar
        return name in parse_package_list(out)

    def uninstall(self, name: str, user_id: str = "0") -> bool:
        rc, out = self._shell("pm", "uninstall", "--user", str(user_id), name)
        if rc in (124, 127):
            raise DeviceError(out.strip())
        # pm exits 0 on "Failure [...]" on some builds and non-zero on others
        return "Success" in out

    def get_package_info(self, name: str) -> Dict[str, str]:
        rc, out = self._shell("dumpsys", "package", name)
        if rc != 0:
            raise DeviceError(f"failed to get package info for {name}: {out.strip()}")
        return parse_package_info(out)
