from __future__ import annotations

import logging

from ..lib.command import run_cmd
from ..lib.env import ExecutionContext, home_dir, join_paths
from ..lib.files import copy_file, copy_tree, create_dir, line_in_file, set_mode
from ..parameters import Parameters
from ..pipeline import BaseTask

logger = logging.getLogger(__name__)

GLOBAL_ENV_VARS = (
    "EDITOR=vim",
    "LIBSEAT_BACKEND=logind",
    "XDG_CURRENT_DESKTOP=sway",
    "XDG_SESSION_TYPE=wayland",
    "WLR_DRM_NO_MODIFIERS=1",
    "# WLR_RENDERER=vulkan",
    "QT_QPA_PLATFORM=wayland",
    "QT_WAYLAND_DISABLE_WINDOWDECORATION=1",
    "QT_STYLE_OVERRIDE=Adwaita-dark",
    "GTK_THEME=Materia:dark",
    "CLUTTER_BACKEND=wayland",
    "SDL_VIDEODRIVER=wayland",
    "ELM_DISPLAY=wl",
    "ELM_ACCEL=opengl",
    "ECORE_EVAS_ENGINE=wayland_egl",
)


class Variables(BaseTask):
    name = "add_global_env_variables"

    def __init__(self, environment_file: str = "/etc/environment") -> None:
        self.environment_file = environment_file

    def run(self) -> str:
        for var in GLOBAL_ENV_VARS:
            line_in_file(self.environment_file, var)
        return ""


class SwayConfigs(BaseTask):
    """Copy the repo's sway/waybar configs into the user's ~/.config/sway."""

    name = "create_sway_config_files"

    def __init__(self, parameters: Parameters, context: ExecutionContext | None = None) -> None:
        self.parameters = parameters
        self.context = context or ExecutionContext()

    def run(self) -> str:
        p = self.parameters
        home = home_dir(p.username)
        sway_dir = join_paths(home, ".config/sway")

        create_dir(join_paths(sway_dir, "conf.d"))
        copy_tree(join_paths(self.context.repo_dir, "assets/conf"), sway_dir)

        run_cmd(["chown", "-R", f"{p.user_id}:{p.user_gid}", home])
        set_mode(join_paths(sway_dir, "waybar.sh"), 0o755)
        return ""


class Bashrc(BaseTask):
    name = "bashrc_and_user_bin_dir"

    def __init__(self, parameters: Parameters, context: ExecutionContext | None = None) -> None:
        self.parameters = parameters
        self.context = context or ExecutionContext()

    def run(self) -> str:
        p = self.parameters
        home = home_dir(p.username)
        bin_dir = join_paths(home, "bin")
        bashrc = join_paths(home, ".bashrc")

        create_dir(bin_dir)
        copy_file(join_paths(self.context.repo_dir, "assets/files/bashrc"), bashrc)
        run_cmd(["chown", "-R", f"{p.user_id}:{p.user_gid}", bin_dir, bashrc])
        return ""
