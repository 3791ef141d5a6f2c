# -*- coding: utf-8 -*-
"""
配置模块

功能：
- 合并命令行参数、YAML 配置文件和环境变量
- 验证监听地址、metrics 路径、超时和日志级别
"""
