"""
Endpoints da API v1.

Módulos disponíveis:
- clientes: Clientes (admissão com CPF/CNPJ)
- cronometro: Cronômetro de horas (iniciar, pausar, parar)
- escritorios: Cadastro de escritórios (tenants)
- fornecedores: Fornecedores
- faturas: Faturas, itens, pagamentos e numeração
- health: Health check
- lancamentos: Lançamentos de horas e aprovação
- resumos: Resumos diários (somente leitura)
- taxas: Histórico de taxas horárias
- validacao: Validação de CPF/CNPJ
"""
