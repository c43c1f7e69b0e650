# backend/aprovafacil/core/error_codes.py

"""
Catálogo de códigos de erro para integração com frontend.
Este arquivo documenta todos os error_code disponíveis no sistema.
"""

ERROR_CODES = {
    # Genéricos
    "GENERIC_ERROR": "Erro genérico",
    "INTERNAL_ERROR": "Erro interno do servidor",
    "NOT_FOUND": "Recurso não encontrado",

    # Autenticação
    "UNAUTHORIZED": "Não autorizado",
    "INVALID_CREDENTIALS": "Email ou senha inválidos",
    "TOKEN_EXPIRED": "Sessão expirada",
    "INVALID_TOKEN": "Token inválido",
    "INVALID_SESSION": "Link de redefinição inválido ou expirado",
    "EMAIL_ALREADY_REGISTERED": "Email já cadastrado",
    "ADMIN_REQUIRED": "Acesso restrito a administradores",
    "FORBIDDEN": "Operação não permitida para este usuário",
    "RATE_LIMIT_EXCEEDED": "Muitas tentativas",

    # Validação
    "VALIDATION_ERROR": "Erros de validação de dados",
    "MISSING_FIELDS": "Campos obrigatórios ausentes",
    "MISSING_FILTERS": "Filtros obrigatórios ausentes",
    "WEAK_PASSWORD": "Senha fraca",
    "INVALID_EMAIL": "Email inválido",
    "INVALID_STATUS": "Status inválido",
    "ANSWER_COUNT_MISMATCH": "Quantidade de respostas divergente",
    "INVALID_DATE_RANGE": "Período inválido",

    # Concursos
    "CONCURSO_NOT_FOUND": "Concurso não encontrado ou inativo",
    "PREFERENCE_NOT_FOUND": "Preferência de concurso não encontrada",
    "CONCURSO_CHANGE_LOCKED": "Troca de concurso bloqueada",
    "CATEGORIA_NOT_FOUND": "Categoria não encontrada",

    # Conteúdo
    "SIMULADO_NOT_FOUND": "Simulado não encontrado",
    "RESULT_NOT_FOUND": "Simulado ainda não realizado",
    "FLASHCARD_NOT_FOUND": "Flashcard não encontrado",
    "APOSTILA_NOT_FOUND": "Apostila não encontrada",
    "MODULE_NOT_FOUND": "Módulo da apostila não encontrado",
    "ASSUNTO_NOT_FOUND": "Assunto não encontrado",
    "WEEK_NOT_FOUND": "Questões semanais não encontradas",
    "PLAN_NOT_FOUND": "Plano de estudos não encontrado",
    "WEEK_ALREADY_EXISTS": "Semana já cadastrada",
    "NO_DISCIPLINES_AVAILABLE": "Sem disciplinas disponíveis",

    # Administração
    "CACHE_CLEAR_FAILED": "Falha ao limpar cache",
    "CACHE_STATS_FAILED": "Falha ao obter estatísticas do cache",
    "SCHEMA_VALIDATION_ERROR": "Falha ao validar schema",
    "DATABASE_UNAVAILABLE": "Banco de dados indisponível",
}
