# watermark_core/template_manager.py
import json
import logging
import os
import pathlib

from .defaults import normalize_config
from .exceptions import ConfigurationError
from .models import TextStyle, WatermarkConfig, WatermarkType

logger = logging.getLogger(__name__)

HOME_ENV = "WATERMARK_CORE_HOME"
TEMPLATE_FILE = "templates.json"
DEFAULT_TEMPLATE = "默认模板"


def default_template_path():
    home = os.environ.get(HOME_ENV)
    base = pathlib.Path(home) if home else pathlib.Path.home() / ".watermark_core"
    return base / TEMPLATE_FILE


def default_template():
    return WatermarkConfig(
        type=WatermarkType.TEXT,
        style=TextStyle(content="版权所有", font_size=40, color="#FFFFFF", opacity=0.8),
        id=DEFAULT_TEMPLATE,
    )


class TemplateManager:
    def __init__(self, path=None):
        self.path = pathlib.Path(path) if path else default_template_path()
        self.templates = {}
        self.last_used = None
        self.load_templates()

    def load_templates(self):
        """加载模板文件"""
        if self.path.exists():
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"template file {self.path} is not valid JSON", e) from e
            self.templates = data.get("templates", {})
            self.last_used = data.get("last_used")
            logger.debug("loaded %d templates from %s", len(self.templates), self.path)
        else:
            # 初始化一个默认模板
            self.templates = {DEFAULT_TEMPLATE: default_template().to_dict()}
            self.last_used = DEFAULT_TEMPLATE
            self.save_templates()

    def save_templates(self):
        """保存模板文件"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(
                {"templates": self.templates, "last_used": self.last_used},
                f, indent=4, ensure_ascii=False
            )

    def save_template(self, name, config):
        """保存配置为模板, config 可以是 WatermarkConfig 或其 dict 形式"""
        self.templates[name] = normalize_config(config).to_dict()
        self.last_used = name
        self.save_templates()

    def load_template(self, name):
        """加载指定模板, 不存在时返回 None"""
        if name in self.templates:
            self.last_used = name
            self.save_templates()
            return normalize_config(self.templates[name])
        return None

    def delete_template(self, name):
        """删除模板"""
        if name in self.templates:
            del self.templates[name]
            # 如果删的是当前模板，回退到默认
            if self.last_used == name:
                self.last_used = DEFAULT_TEMPLATE if DEFAULT_TEMPLATE in self.templates else None
            self.save_templates()

    def list_templates(self):
        return sorted(self.templates)
