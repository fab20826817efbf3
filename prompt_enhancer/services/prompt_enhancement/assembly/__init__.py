from .prompt_assembler import PromptAssembler, AssembledPrompt
from .response_assembler import ResponseAssembler, token_ratio

__all__ = ["PromptAssembler", "AssembledPrompt", "ResponseAssembler", "token_ratio"]
